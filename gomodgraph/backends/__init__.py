import logging

from gomodgraph.core.cache import store_mod_file
from .base import ModFileBackend
from .gitlab import GitLabModFetcher


def download(backend: ModFileBackend, cache_dir: str) -> None:
    """Stores every mod file the backend provides in the cache directory."""
    logging.info(f"Downloading mod files from {backend.name} into {cache_dir!r}")

    backend.provide_mod_files(
        lambda project_name, version, content: store_mod_file(cache_dir, project_name, version, content)
    )

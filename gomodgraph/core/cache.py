import hashlib
import logging
import os
import shutil
from typing import List

from gomodgraph.core.graph import DependencyGraph, build_dependency_graph
from gomodgraph.core.modfile import Module, parse_mod_file
from gomodgraph.errors import CacheError, ModFileParseError

DEFAULT_CACHE_DIR = "/tmp/gomodgraph/"


def encode_filename(project_name: str, version: str) -> str:
    # Only needs to be unique, the project name is never read back
    hashed_project_name = hashlib.sha256(project_name.encode()).hexdigest()
    return f"{hashed_project_name}_{version.encode().hex()}"


def decode_filename(filename: str) -> str:
    """Returns the version encoded in a cached file's name."""
    parts = filename.split("_")
    if len(parts) != 2:
        raise CacheError(f"Filename {filename!r} does not follow pattern <hex>_<hex>")

    try:
        return bytes.fromhex(parts[1]).decode()
    except ValueError as e:
        raise CacheError(f"Failed decoding version of {filename!r}: {e}") from e


def store_mod_file(cache_dir: str, project_name: str, version: str, content: bytes) -> None:
    path = os.path.join(cache_dir, encode_filename(project_name, version))
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(content)


def ensure_cache_dir(cache_dir: str) -> bool:
    """Creates the cache directory. Returns True if it did not exist before."""
    try:
        os.mkdir(cache_dir, 0o700)
    except FileExistsError:
        return False
    except OSError as e:
        raise CacheError(
            f"Directory for downloaded mod files ({cache_dir!r}) does not exist and cannot be created: {e}"
        ) from e

    return True


def clean_cache(cache_dir: str) -> None:
    if os.path.isdir(cache_dir):
        logging.info(f"Removing cache at {cache_dir!r}")
        shutil.rmtree(cache_dir)


def read_mod_files(cache_dir: str) -> List[Module]:
    try:
        entries = sorted(os.scandir(cache_dir), key=lambda e: e.name)
    except OSError as e:
        raise CacheError(f"Reading contents of download dir: {e}") from e

    modules = []

    for entry in entries:
        if not entry.is_file(follow_symlinks=False):
            continue

        version = decode_filename(entry.name)

        try:
            mod_file = parse_mod_file(entry.path)
        except ModFileParseError as e:
            logging.error(f"Could not parse mod file {entry.path!r}: {e}")
            continue

        modules.append(Module(mod_file=mod_file, version=version, source=entry.path))

    logging.info(f"Read {len(modules)} mod files from {cache_dir!r}")

    return modules


def load_dependency_graph(cache_dir: str) -> DependencyGraph:
    return build_dependency_graph(read_mod_files(cache_dir))

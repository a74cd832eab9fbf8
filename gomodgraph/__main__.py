import logging
import socket
import sys
from urllib.parse import quote_plus

import click
import uvicorn
from rich.console import Console

from gomodgraph.__version__ import __version__
from gomodgraph.app import create_app, setup_logging
from gomodgraph.backends import GitLabModFetcher, download
from gomodgraph.config import GL_BASE_URL_ENV_VAR, configure
from gomodgraph.core.cache import DEFAULT_CACHE_DIR, clean_cache, ensure_cache_dir, load_dependency_graph
from gomodgraph.errors import GomodgraphError

console = Console(stderr=True)


@click.command()
@click.version_option(__version__, package_name="gomodgraph")
@click.option("--gitlab-base-url", envvar=GL_BASE_URL_ENV_VAR, default="", help="GitLab's API Base URL")
@click.option("--mod", "home_module", default="", help="Show graph of this module instead of giant overview graph")
@click.option("--cache-dir", default=DEFAULT_CACHE_DIR, show_default=True, help="Where downloaded mod files are kept")
@click.option("--clean-cache", is_flag=True, help="Discard downloaded mod files and fetch them again")
@click.option("--host", default="localhost", show_default=True, help="Interface to listen on")
@click.option("--port", default=0, show_default=True, help="Port to listen on, 0 picks a free one")
@click.option("--log-level", default="INFO", show_default=True, help="Log level (DEBUG, INFO, ...)")
def main(gitlab_base_url, home_module, cache_dir, clean_cache, host, port, log_level):
    """ Entrypoint when is installed via pip """
    setup_logging(log_level)

    try:
        cfg = configure(gitlab_base_url, home_module, cache_dir, clean_cache)
        graph = prepare_graph(cfg)
    except GomodgraphError as e:
        logging.error(str(e))
        sys.exit(1)

    app = create_app(graph, cfg.registry_prefix)

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError as e:
        sock.close()
        logging.error(f"Could not open listener on {host}:{port}: {e}")
        sys.exit(1)

    url = f"http://{host}:{sock.getsockname()[1]}/?mod={quote_plus(cfg.home_module)}"
    logging.info(f"Serving at {url}")
    console.print(f"[bold green]Serving at[/] {url}")

    server = uvicorn.Server(uvicorn.Config(app, log_level=log_level.lower()))
    server.run(sockets=[sock])


def prepare_graph(cfg):
    if cfg.clean_cache:
        clean_cache(cfg.cache_dir)

    if ensure_cache_dir(cfg.cache_dir):
        logging.info(f"Cache at {cfg.cache_dir!r} is empty, will scan for projects and download mod files")
        try:
            download(GitLabModFetcher(cfg.gitlab_base_url, cfg.gitlab_token), cfg.cache_dir)
        except Exception:
            # Otherwise the next start would find the directory and skip the download
            clean_cache(cfg.cache_dir)
            raise

    return load_dependency_graph(cfg.cache_dir)


# Development mode
if __name__ == "__main__":
    main()

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from gomodgraph.core.cache import DEFAULT_CACHE_DIR
from gomodgraph.errors import ConfigError

GL_TOKEN_ENV_VAR = "GITLAB_API_TOKEN"
GL_BASE_URL_ENV_VAR = "GITLAB_BASE_URL"


@dataclass
class Config:
    gitlab_token: str
    gitlab_base_url: str
    home_module: str = ""
    # Host of the Go registry, stripped from module names for display
    registry_prefix: str = ""
    cache_dir: str = DEFAULT_CACHE_DIR
    clean_cache: bool = False


def configure(
    base_url: Optional[str] = None,
    home_module: str = "",
    cache_dir: str = DEFAULT_CACHE_DIR,
    clean_cache: bool = False,
    token: Optional[str] = None,
) -> Config:
    base_url = base_url or os.getenv(GL_BASE_URL_ENV_VAR, "")
    if not base_url:
        raise ConfigError(
            f"GitLab's API Base URL is required but neither the flag nor the env variable ({GL_BASE_URL_ENV_VAR!r}) is set"
        )

    hostname = urlparse(base_url).hostname
    if not hostname:
        raise ConfigError(f"GitLab API Base URL {base_url!r} seems not to be a valid URL")

    token = token or os.getenv(GL_TOKEN_ENV_VAR, "")
    if not token:
        raise ConfigError(f"GitLab's API token is required but the env variable ({GL_TOKEN_ENV_VAR!r}) is not set")

    return Config(
        gitlab_token=token,
        gitlab_base_url=base_url,
        home_module=home_module or "",
        registry_prefix=f"{hostname}/",
        cache_dir=cache_dir,
        clean_cache=clean_cache,
    )

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from gomodgraph.backends.base import ModFileBackend, StoreModFileFn
from gomodgraph.errors import BackendError

PAGINATION_PROJECTS_PER_PAGE = 100
DOWNLOAD_ROUTINES = 10
MOD_FILE_NAME = "go.mod"
API_PATH = "/api/v4"


@dataclass
class DownloadStats:
    downloaded: int = 0
    no_mod_file: int = 0
    errors: int = 0


class GitLabModFetcher(ModFileBackend):
    """
    Lists all projects visible to the token and downloads their go.mod
    together with the project's latest tag.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        concurrency: int = DOWNLOAD_ROUTINES,
        per_page: int = PAGINATION_PROJECTS_PER_PAGE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        # Accepts the instance URL as well as the API base URL
        self.base_url = base_url.rstrip("/")
        if self.base_url.endswith(API_PATH):
            self.base_url = self.base_url[:-len(API_PATH)]
        self.token = token
        self.concurrency = concurrency
        self.per_page = per_page
        # Tests inject an httpx.MockTransport
        self.transport = transport

    @property
    def name(self) -> str:
        return "GitLab"

    def provide_mod_files(self, store_mod_file: StoreModFileFn) -> None:
        asyncio.run(self.download_mod_files(store_mod_file))

    def _client(self) -> httpx.AsyncClient:
        limits = httpx.Limits(max_keepalive_connections=self.concurrency, max_connections=self.concurrency * 2)
        return httpx.AsyncClient(
            base_url=f"{self.base_url}{API_PATH}",
            headers={"PRIVATE-TOKEN": self.token},
            timeout=30.0,
            limits=limits,
            transport=self.transport,
        )

    async def download_mod_files(self, store_mod_file: StoreModFileFn) -> DownloadStats:
        async with self._client() as client:
            try:
                projects = await self.fetch_all_projects(client)
            except httpx.HTTPError as e:
                raise BackendError(f"fetching projects from GitLab: {e}") from e

            logging.info(f"Going to check {len(projects)} projects for {MOD_FILE_NAME} files")

            stats = DownloadStats()
            semaphore = asyncio.Semaphore(self.concurrency)

            async def download_safe(project):
                async with semaphore:
                    await self._download_project(client, project, store_mod_file, stats)

            await asyncio.gather(*(download_safe(p) for p in projects))

        logging.info(
            f"{stats.no_mod_file} repositories contain no {MOD_FILE_NAME} file. "
            f"Downloaded {stats.downloaded} files, {stats.errors} errors occurred."
        )

        return stats

    async def fetch_all_projects(self, client: httpx.AsyncClient) -> List[Dict[str, Any]]:
        all_projects = []
        page = "1"

        while page:
            response = await client.get(
                "/projects",
                params={"simple": "true", "per_page": self.per_page, "page": page},
            )
            response.raise_for_status()

            all_projects.extend(response.json())

            # Empty on the last page
            page = response.headers.get("X-Next-Page", "").strip()

        return all_projects

    async def _download_project(self, client, project, store_mod_file, stats: DownloadStats) -> None:
        project_name = project.get("path_with_namespace") or project.get("name_with_namespace") or str(project["id"])

        try:
            content = await self.fetch_mod_file(client, project)
            if content is None:
                stats.no_mod_file += 1
                return

            version = await self.fetch_latest_tag(client, project)
            store_mod_file(project_name, version, content)
        except (httpx.HTTPError, OSError) as e:
            logging.error(f"Failed to download {MOD_FILE_NAME} for project {project_name!r}: {e}")
            stats.errors += 1
            return

        stats.downloaded += 1

    async def fetch_mod_file(self, client: httpx.AsyncClient, project: Dict[str, Any]) -> Optional[bytes]:
        """Raw go.mod of the default branch, None if the project has none."""
        # Empty repositories have no default branch and thus no files
        if not project.get("default_branch"):
            return None

        response = await client.get(
            f"/projects/{project['id']}/repository/files/{quote(MOD_FILE_NAME, safe='')}/raw",
            params={"ref": project["default_branch"]},
        )
        if response.status_code == 404:
            return None
        response.raise_for_status()

        return response.content

    async def fetch_latest_tag(self, client: httpx.AsyncClient, project: Dict[str, Any]) -> str:
        """Name of the most recently updated tag, empty if there are none."""
        response = await client.get(
            f"/projects/{project['id']}/repository/tags",
            params={"per_page": 1},
        )
        response.raise_for_status()

        tags = response.json()
        if not tags:
            return ""
        return tags[0].get("name", "")

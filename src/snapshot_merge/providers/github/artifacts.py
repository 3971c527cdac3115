from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, Sequence

import httpx

from ...errors import ConfigurationError, TransientIOError
from ...models import Artifact, ArtifactPage
from ...store.archive import extract_archive, pack_files
from .client import GitHubRestClient, PaginationGap, RetryableGitHubError
from .results import ActionsResultsClient

logger = logging.getLogger(__name__)

FATAL_STATUS = frozenset({401, 404})


@asynccontextmanager
async def _store_errors(action: str):
    try:
        yield
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        if status in FATAL_STATUS:
            raise ConfigurationError(
                f"{action} failed with HTTP {status}; check the repository "
                "name and token permissions"
            ) from exc
        raise TransientIOError(f"{action} failed with HTTP {status}") from exc
    except (httpx.HTTPError, RetryableGitHubError) as exc:
        raise TransientIOError(f"{action} failed: {exc}") from exc


class GitHubArtifactStore:
    """Workflow artifacts of one repository, through the REST API."""

    def __init__(
        self,
        client: GitHubRestClient,
        owner: str,
        repo: str,
        *,
        uploader: Callable[[], ActionsResultsClient] | None = None,
        on_gap: Callable[[PaginationGap], None] | None = None,
    ) -> None:
        self._client = client
        self.owner = owner
        self.repo = repo
        self._uploader = uploader or ActionsResultsClient.from_env
        self._on_gap = on_gap or _log_gap

    @property
    def _base(self) -> str:
        return f"/repos/{self.owner}/{self.repo}/actions/artifacts"

    async def list_pages(
        self, name: str, *, per_page: int = 100
    ) -> AsyncIterator[ArtifactPage]:
        pages = self._client.paginate_pages(
            self._base,
            params={"name": name, "per_page": per_page, "page": 1},
            items_key="artifacts",
            on_gap=self._on_gap,
            resource=name,
        )
        try:
            while True:
                async with _store_errors(f"listing artifacts {name!r}"):
                    try:
                        page = await pages.__anext__()
                    except StopAsyncIteration:
                        return
                yield ArtifactPage(
                    items=tuple(Artifact.from_github(item) for item in page.items),
                    page=page.page,
                )
        finally:
            await pages.aclose()

    async def download(self, artifact: Artifact, dest: Path) -> Path:
        logger.info(
            "Downloading artifact %s (run %s) to %s", artifact.id, artifact.run_id, dest
        )
        async with _store_errors(f"downloading artifact {artifact.id}"):
            data = await self._client.get_bytes(f"{self._base}/{artifact.id}/zip")
        try:
            extract_archive(data, dest)
        except (ValueError, OSError) as exc:
            raise TransientIOError(
                f"artifact {artifact.id} is not a readable archive: {exc}"
            ) from exc
        return Path(dest)

    async def upload(self, name: str, files: Sequence[Path], root_dir: Path) -> Artifact:
        data = pack_files(files, root_dir)
        async with self._uploader() as uploader:
            artifact_id = await uploader.upload_zip(name, data)
        async with _store_errors(f"reading uploaded artifact {artifact_id}"):
            payload = await self._client.get_json(f"{self._base}/{artifact_id}")
        artifact = Artifact.from_github(payload)
        logger.info("Uploaded artifact %s (%s) created %s", artifact.id, name, artifact.created_at)
        return artifact


def _log_gap(gap: PaginationGap) -> None:
    logger.warning(
        "Pagination gap listing %s: page %s, expected %s (%s)",
        gap.resource,
        gap.page,
        gap.expected_page,
        gap.detail,
    )

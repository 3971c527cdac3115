from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator, Protocol, Sequence

from ..models import Artifact, ArtifactPage


class ArtifactStore(Protocol):
    """Immutable named blobs, listed newest-first one page at a time."""

    def list_pages(self, name: str, *, per_page: int = 100) -> AsyncIterator[ArtifactPage]:
        ...

    async def download(self, artifact: Artifact, dest: Path) -> Path:
        ...

    async def upload(self, name: str, files: Sequence[Path], root_dir: Path) -> Artifact:
        ...


async def latest_artifact(store: ArtifactStore, name: str) -> Artifact | None:
    pages = store.list_pages(name, per_page=1)
    try:
        async for page in pages:
            if page.items:
                return page.items[0]
    finally:
        await pages.aclose()
    return None

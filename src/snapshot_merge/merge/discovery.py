from __future__ import annotations

import logging
from dataclasses import dataclass

from ..models import Artifact
from ..store.base import ArtifactStore
from ..utils.time import is_after

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Discovery:
    # newest-first, in listing order
    candidates: tuple[Artifact, ...]
    new_checkpoint: str
    pages_read: int


async def discover_candidates(
    store: ArtifactStore,
    name: str,
    checkpoint: str,
    *,
    per_page: int = 100,
) -> Discovery:
    """Collect artifacts under ``name`` created strictly after ``checkpoint``.

    The new checkpoint is the newest artifact on the first non-empty page,
    fixed before the scan goes on, so artifacts created while paging are
    left for the next run. Paging stops at the first artifact at or before
    the checkpoint. An empty checkpoint consumes the whole listing.
    """
    logger.info("Discovering %s using checkpoint %r", name, checkpoint)
    candidates: list[Artifact] = []
    new_checkpoint = ""
    pages_read = 0
    reached_checkpoint = False

    pages = store.list_pages(name, per_page=per_page)
    try:
        async for page in pages:
            pages_read += 1
            if not page.items:
                continue
            if not new_checkpoint:
                new_checkpoint = page.items[0].created_at

            for artifact in page.items:
                logger.debug("Examining %s created_at %s", name, artifact.created_at)
                if not is_after(artifact.created_at, checkpoint):
                    reached_checkpoint = True
                    break
                logger.debug(
                    "Adding artifact %s (run %s, created %s)",
                    artifact.id,
                    artifact.run_id,
                    artifact.created_at,
                )
                candidates.append(artifact)

            if reached_checkpoint:
                logger.info("Stopping pagination past checkpoint %s", checkpoint)
                break
    finally:
        await pages.aclose()

    logger.info("Found %d candidate(s) across %d page(s)", len(candidates), pages_read)
    return Discovery(
        candidates=tuple(candidates),
        new_checkpoint=new_checkpoint,
        pages_read=pages_read,
    )

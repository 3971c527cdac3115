from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from ..errors import FoldError
from ..models import Artifact
from ..store.base import ArtifactStore

logger = logging.getLogger(__name__)


async def fetch_candidates(
    store: ArtifactStore,
    candidates: Sequence[Artifact],
    work_dir: Path,
    snapshot_filename: str,
) -> list[Path]:
    """Download newest-first ``candidates`` and return snapshots oldest-first.

    Downloads run one at a time, in fold order.
    """
    ordered = list(reversed(candidates))
    paths: list[Path] = []
    for artifact in ordered:
        dest = Path(work_dir) / str(artifact.id)
        await store.download(artifact, dest)
        snapshot = dest / snapshot_filename
        if not snapshot.is_file():
            raise FoldError(
                f"extraction artifact {artifact.id} does not contain {snapshot_filename!r}"
            )
        paths.append(snapshot)
    logger.info("Fetched %d snapshot(s) oldest to newest", len(paths))
    return paths

"""Incremental merge of extraction snapshots into the current snapshot.

One run reads the authoritative checkpoint, discovers the extraction
artifacts created after it, downloads them oldest to newest, folds them onto
the prior snapshot and publishes the result with a new checkpoint. Any
failure aborts before publishing, so the prior checkpoint stays
authoritative and the next run rediscovers the same candidates.

Runs against the same checkpoint lineage must not overlap. Two concurrent
runs could read the same checkpoint and race on publication, dropping one
run's candidates. Callers provide that exclusion (for example a workflow
concurrency group of one); the engine holds no lock.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from ..checkpoint import CheckpointStore
from ..config import MergeSettings
from ..errors import FoldError, MergeError
from ..models import MergeMode, MergeResult
from ..store.base import ArtifactStore
from .discovery import discover_candidates
from .fetch import fetch_candidates
from .fold import Fold

logger = logging.getLogger(__name__)


class MergeEngine:
    def __init__(
        self,
        store: ArtifactStore,
        fold: Fold,
        settings: MergeSettings | None = None,
    ) -> None:
        self.store = store
        self.fold = fold
        self.settings = settings or MergeSettings()

    async def run_merge(self) -> MergeResult:
        settings = self.settings.validate_names()
        work_dir = Path(settings.work_dir)
        self.fold.check()

        checkpoints = CheckpointStore(self.store, settings)
        prior = await checkpoints.load_latest(work_dir)
        discovery = await discover_candidates(
            self.store,
            settings.extract_artifact_name,
            prior.timestamp if prior else "",
            per_page=settings.per_page,
        )
        paths = await fetch_candidates(
            self.store, discovery.candidates, work_dir, settings.snapshot_filename
        )
        count = len(paths)
        output = work_dir / "merged" / settings.snapshot_filename

        if prior is None:
            if count == 0:
                logger.info("No current snapshot and no extractions to merge")
                return MergeResult(
                    published=False,
                    new_checkpoint="",
                    candidate_count=0,
                    mode=MergeMode.NOOP,
                )
            if count == 1:
                logger.info("No current snapshot and 1 extraction; promoting it")
                snapshot, mode = paths[0], MergeMode.PROMOTE
            else:
                logger.info("No current snapshot and %d extractions to merge", count)
                snapshot, mode = self._fold(paths, output), MergeMode.FOLD
            checkpoint = discovery.new_checkpoint
        elif count == 0:
            logger.info("Current snapshot and no extractions; republishing")
            snapshot, mode = prior.snapshot_path, MergeMode.REPUBLISH
            checkpoint = prior.timestamp
        else:
            logger.info("Current snapshot and %d extraction(s) to merge", count)
            snapshot = self._fold([prior.snapshot_path, *paths], output)
            mode = MergeMode.FOLD
            checkpoint = discovery.new_checkpoint

        await checkpoints.publish(snapshot, checkpoint, work_dir)
        logger.info("Merge complete (%s), checkpoint %s", mode.value, checkpoint)
        return MergeResult(
            published=True,
            new_checkpoint=checkpoint,
            candidate_count=count,
            mode=mode,
        )

    def _fold(self, inputs: Sequence[Path], output: Path) -> Path:
        try:
            return self.fold.merge(inputs, output)
        except MergeError:
            raise
        except Exception as exc:
            raise FoldError(f"fold failed: {exc}") from exc


async def run_merge(
    store: ArtifactStore,
    fold: Fold,
    settings: MergeSettings | None = None,
) -> MergeResult:
    return await MergeEngine(store, fold, settings).run_merge()

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .config import MergeSettings
from .errors import ConfigurationError
from .models import Artifact, Checkpoint
from .store.base import ArtifactStore, latest_artifact
from .utils.time import parse_datetime

logger = logging.getLogger(__name__)


class CheckpointStore:
    """The current snapshot and its checkpoint, kept as one artifact.

    The newest artifact under ``settings.current_artifact_name`` is the
    authoritative checkpoint. Publishing never edits it; it adds a newer one.
    """

    def __init__(self, store: ArtifactStore, settings: MergeSettings) -> None:
        self.store = store
        self.settings = settings

    async def load_latest(self, work_dir: Path) -> Checkpoint | None:
        name = self.settings.current_artifact_name
        artifact = await latest_artifact(self.store, name)
        if artifact is None:
            logger.info("No prior %s artifact found", name)
            return None

        dest = Path(work_dir) / str(artifact.id)
        logger.info("Downloading prior checkpoint artifact %s (run %s)", artifact.id, artifact.run_id)
        await self.store.download(artifact, dest)

        checkpoint_file = dest / self.settings.checkpoint_filename
        snapshot_path = dest / self.settings.snapshot_filename
        if not checkpoint_file.is_file() or not snapshot_path.is_file():
            raise ConfigurationError(
                f"checkpoint artifact {artifact.id} is missing "
                f"{self.settings.checkpoint_filename!r} or {self.settings.snapshot_filename!r}"
            )
        timestamp = checkpoint_file.read_text(encoding="utf-8").strip()
        if not timestamp:
            # A blank checkpoint beside a snapshot would refold all history.
            raise ConfigurationError(f"checkpoint artifact {artifact.id} has a blank checkpoint")
        try:
            parse_datetime(timestamp)
        except ValueError as exc:
            raise ConfigurationError(
                f"checkpoint artifact {artifact.id} has an unreadable checkpoint {timestamp!r}"
            ) from exc
        logger.info("Last run checkpoint: %s, snapshot %s", timestamp, snapshot_path)
        return Checkpoint(timestamp=timestamp, snapshot_path=snapshot_path, artifact_id=artifact.id)

    async def publish(self, snapshot_path: Path, timestamp: str, work_dir: Path) -> Artifact:
        stage = Path(work_dir) / "publish"
        if stage.exists():
            shutil.rmtree(stage)
        stage.mkdir(parents=True)

        snapshot_target = stage / self.settings.snapshot_filename
        checkpoint_target = stage / self.settings.checkpoint_filename
        shutil.copyfile(snapshot_path, snapshot_target)
        checkpoint_target.write_text(timestamp, encoding="utf-8")

        logger.info("Publishing %s with checkpoint %s", self.settings.current_artifact_name, timestamp)
        return await self.store.upload(
            self.settings.current_artifact_name,
            [snapshot_target, checkpoint_target],
            stage,
        )

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from .config import MergeSettings
from .models import Artifact
from .store.base import ArtifactStore

logger = logging.getLogger(__name__)


async def publish_extraction(
    store: ArtifactStore,
    snapshot: Path,
    settings: MergeSettings,
) -> Artifact:
    """Upload one extraction output for a later merge run to pick up."""
    stage = Path(settings.work_dir) / "extraction"
    if stage.exists():
        shutil.rmtree(stage)
    stage.mkdir(parents=True)
    target = stage / settings.snapshot_filename
    shutil.copyfile(snapshot, target)
    artifact = await store.upload(settings.extract_artifact_name, [target], stage)
    logger.info("Uploaded %s artifact %s", settings.extract_artifact_name, artifact.id)
    return artifact

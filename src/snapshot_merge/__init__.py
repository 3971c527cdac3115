from .config import MergeSettings
from .errors import ConfigurationError, FoldError, MergeError, TransientIOError
from .merge.engine import MergeEngine, run_merge
from .models import Artifact, ArtifactPage, Checkpoint, MergeMode, MergeResult

__all__ = [
    "Artifact",
    "ArtifactPage",
    "Checkpoint",
    "ConfigurationError",
    "FoldError",
    "MergeEngine",
    "MergeError",
    "MergeMode",
    "MergeResult",
    "MergeSettings",
    "TransientIOError",
    "run_merge",
]

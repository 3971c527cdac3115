from .base import ArtifactStore, latest_artifact
from .filesystem import FileArtifactStore

__all__ = ["ArtifactStore", "FileArtifactStore", "latest_artifact"]

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from .errors import ConfigurationError

EXTRACT_ARTIFACT_NAME = "_extracted-documentation"
CURRENT_ARTIFACT_NAME = "_current-documentation"


class MergeSettings(BaseModel):
    """Names and locations shared by every step of a merge run."""

    repo: str | None = None
    extract_artifact_name: str = EXTRACT_ARTIFACT_NAME
    current_artifact_name: str = CURRENT_ARTIFACT_NAME
    snapshot_filename: str = "documentation.db"
    checkpoint_filename: str = "checkpoint"
    work_dir: Path = Path("_tmp")
    fold_executable: str = "hyaline"
    debug: bool = False
    per_page: int = 100

    def validate_names(self) -> "MergeSettings":
        if not self.extract_artifact_name.strip():
            raise ConfigurationError("extract artifact name must not be empty")
        if not self.current_artifact_name.strip():
            raise ConfigurationError("checkpoint artifact name must not be empty")
        if self.extract_artifact_name == self.current_artifact_name:
            raise ConfigurationError(
                "extract and checkpoint artifact names must differ: "
                f"{self.extract_artifact_name!r}"
            )
        if self.snapshot_filename == self.checkpoint_filename:
            raise ConfigurationError("snapshot and checkpoint filenames must differ")
        for filename in (self.snapshot_filename, self.checkpoint_filename):
            if not filename or "/" in filename or "\\" in filename:
                raise ConfigurationError(f"invalid artifact filename: {filename!r}")
        if self.per_page < 1 or self.per_page > 100:
            raise ConfigurationError("per_page must be between 1 and 100")
        if self.repo is not None:
            self.owner_and_name()
        return self

    def owner_and_name(self) -> tuple[str, str]:
        if not self.repo or self.repo.count("/") != 1:
            raise ConfigurationError(
                f"repository must be in owner/name format, got {self.repo!r}"
            )
        owner, name = self.repo.split("/", 1)
        if not owner or not name:
            raise ConfigurationError(
                f"repository must be in owner/name format, got {self.repo!r}"
            )
        return owner, name

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping


@dataclass(frozen=True)
class Artifact:
    id: int
    name: str
    created_at: str
    run_id: int | None = None

    @classmethod
    def from_github(cls, payload: Mapping[str, Any]) -> "Artifact":
        workflow_run = payload.get("workflow_run") or {}
        return cls(
            id=int(payload["id"]),
            name=payload.get("name") or "",
            created_at=payload.get("created_at") or "",
            run_id=workflow_run.get("id"),
        )


@dataclass(frozen=True)
class ArtifactPage:
    items: tuple[Artifact, ...]
    page: int


@dataclass(frozen=True)
class Checkpoint:
    timestamp: str
    snapshot_path: Path
    artifact_id: int | None = None


class MergeMode(str, Enum):
    NOOP = "noop"
    PROMOTE = "promote"
    FOLD = "fold"
    REPUBLISH = "republish"


@dataclass(frozen=True)
class MergeResult:
    published: bool
    new_checkpoint: str
    candidate_count: int
    mode: MergeMode

    def to_json_dict(self) -> dict[str, object]:
        return {
            "published": self.published,
            "new_checkpoint": self.new_checkpoint,
            "candidate_count": self.candidate_count,
            "mode": self.mode.value,
        }

from __future__ import annotations

import json
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Callable, Sequence

from pydantic import BaseModel

from ..errors import TransientIOError
from ..models import Artifact, ArtifactPage
from ..utils.time import format_timestamp, parse_datetime


class ArtifactIndexRow(BaseModel):
    id: int
    name: str
    created_at: str
    run_id: int | None = None
    relative_path: str


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FileArtifactStore:
    """Artifact store backed by a local directory.

    Layout:
      <root>/artifact_index.jsonl
      <root>/artifacts/<name>/<id>/<files>
    """

    root: Path
    clock: Callable[[], datetime] = field(default=_utc_now)
    run_id: int | None = None

    @property
    def index_path(self) -> Path:
        return Path(self.root) / "artifact_index.jsonl"

    def _rows(self) -> list[ArtifactIndexRow]:
        if not self.index_path.exists():
            return []
        rows: list[ArtifactIndexRow] = []
        for line in self.index_path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            rows.append(ArtifactIndexRow.model_validate(json.loads(line)))
        return rows

    def _append(self, row: ArtifactIndexRow) -> None:
        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        with self.index_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(row.model_dump(mode="json"), sort_keys=True, ensure_ascii=True))
            f.write("\n")

    async def list_pages(
        self, name: str, *, per_page: int = 100
    ) -> AsyncIterator[ArtifactPage]:
        rows = [r for r in self._rows() if r.name == name]
        rows.sort(key=lambda r: (parse_datetime(r.created_at), r.id), reverse=True)
        for start in range(0, len(rows), per_page):
            chunk = rows[start : start + per_page]
            yield ArtifactPage(
                items=tuple(
                    Artifact(id=r.id, name=r.name, created_at=r.created_at, run_id=r.run_id)
                    for r in chunk
                ),
                page=start // per_page + 1,
            )

    async def download(self, artifact: Artifact, dest: Path) -> Path:
        row = next((r for r in self._rows() if r.id == artifact.id), None)
        if row is None:
            raise TransientIOError(f"artifact {artifact.id} not found in {self.root}")
        src = Path(self.root) / row.relative_path
        if not src.is_dir():
            raise TransientIOError(f"files of artifact {artifact.id} are missing from {src}")
        dest = Path(dest)
        dest.mkdir(parents=True, exist_ok=True)
        for p in sorted(src.rglob("*")):
            if p.is_file():
                target = dest / p.relative_to(src)
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(p, target)
        return dest

    async def upload(self, name: str, files: Sequence[Path], root_dir: Path) -> Artifact:
        rows = self._rows()
        artifact_id = max((r.id for r in rows), default=0) + 1
        rel = f"artifacts/{name}/{artifact_id}"
        target_dir = Path(self.root) / rel
        root = Path(root_dir)
        for f in files:
            p = Path(f)
            full = p if p.is_absolute() else root / p
            target = target_dir / full.relative_to(root)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(full, target)
        row = ArtifactIndexRow(
            id=artifact_id,
            name=name,
            created_at=format_timestamp(self.clock()),
            run_id=self.run_id,
            relative_path=rel,
        )
        self._append(row)
        return Artifact(id=row.id, name=row.name, created_at=row.created_at, run_id=row.run_id)

from __future__ import annotations

import hashlib
import io
import zipfile
from pathlib import Path
from typing import Sequence


def _normalize_relpath(path: str) -> str:
    raw = path.replace("\\", "/").strip()
    while raw.startswith("/"):
        raw = raw[1:]
    parts = [p for p in raw.split("/") if p not in {"", "."}]
    if not parts:
        raise ValueError(f"invalid archive member: {path!r}")
    if any(p == ".." for p in parts):
        raise ValueError(f"path traversal is not allowed: {path!r}")
    return "/".join(parts)


def pack_files(files: Sequence[Path], root_dir: Path) -> bytes:
    """Zip ``files`` with member names relative to ``root_dir``."""
    root = Path(root_dir).resolve()
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for f in files:
            p = Path(f)
            full = p if p.is_absolute() else root / p
            rel = full.resolve().relative_to(root).as_posix()
            zf.write(full, arcname=_normalize_relpath(rel))
    return buf.getvalue()


def extract_archive(data: bytes, dest: Path) -> list[Path]:
    dest = Path(dest)
    dest.mkdir(parents=True, exist_ok=True)
    out: list[Path] = []
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            target = dest / _normalize_relpath(info.filename)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(zf.read(info))
            out.append(target)
    return out


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()

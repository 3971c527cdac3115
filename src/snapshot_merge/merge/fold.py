from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Protocol, Sequence

from ..errors import ConfigurationError, FoldError

logger = logging.getLogger(__name__)


class Fold(Protocol):
    """Deterministic, side-effect-free combination of ordered snapshots."""

    def check(self) -> None:
        ...

    def merge(self, inputs: Sequence[Path], output: Path) -> Path:
        ...


def _require_inputs(inputs: Sequence[Path]) -> None:
    if len(inputs) < 2:
        raise FoldError(f"fold needs at least 2 inputs, got {len(inputs)}")


class HyalineFold:
    """Runs ``hyaline merge documentation`` over the ordered inputs."""

    def __init__(self, executable: str = "hyaline", *, debug: bool = False) -> None:
        self.executable = executable
        self.debug = debug

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        cmd = [self.executable, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(cmd, check=False, capture_output=True, text=True)
        except FileNotFoundError as exc:
            raise ConfigurationError(
                f"fold executable {self.executable!r} not found on PATH"
            ) from exc

    def check(self) -> None:
        result = self._run(["version"])
        if result.returncode != 0:
            raise ConfigurationError(
                f"`{self.executable} version` exited {result.returncode}: "
                f"{(result.stderr or '').strip()}"
            )
        logger.info("%s version: %s", self.executable, (result.stdout or "").strip())

    def merge(self, inputs: Sequence[Path], output: Path) -> Path:
        _require_inputs(inputs)
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)
        if output.exists():
            output.unlink()

        args = ["merge", "documentation"]
        for p in inputs:
            args.extend(["--input", str(p)])
        args.extend(["--output", str(output)])
        if self.debug:
            args.insert(0, "--debug")

        result = self._run(args)
        if result.returncode != 0:
            raise FoldError(
                f"`{self.executable} merge documentation` exited {result.returncode}: "
                f"{(result.stderr or '').strip()}"
            )
        if not output.is_file():
            raise FoldError(f"fold produced no output at {output}")
        return output


class PairwiseFold:
    """Left-to-right reduction with a two-way ``combine(a, b, out)``.

    ``fold(fold(c1, c2), c3)...``; intermediates are written beside the
    output and removed afterwards.
    """

    def __init__(self, combine: Callable[[Path, Path, Path], None]) -> None:
        self.combine = combine

    def check(self) -> None:
        return None

    def merge(self, inputs: Sequence[Path], output: Path) -> Path:
        _require_inputs(inputs)
        output = Path(output)
        output.parent.mkdir(parents=True, exist_ok=True)
        scratch = output.parent / f".{output.name}.steps"
        scratch.mkdir(exist_ok=True)
        try:
            acc = Path(inputs[0])
            for step, nxt in enumerate(inputs[1:], start=1):
                out = output if step == len(inputs) - 1 else scratch / f"step-{step}"
                self.combine(acc, Path(nxt), out)
                if not out.is_file():
                    raise FoldError(f"fold step {step} produced no output")
                acc = out
        finally:
            shutil.rmtree(scratch, ignore_errors=True)
        return output

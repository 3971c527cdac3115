from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

import typer
from rich import print

from ..checkpoint import CheckpointStore
from ..config import CURRENT_ARTIFACT_NAME, EXTRACT_ARTIFACT_NAME, MergeSettings
from ..errors import ConfigurationError, MergeError
from ..merge.discovery import discover_candidates
from ..merge.engine import MergeEngine
from ..merge.fold import HyalineFold
from ..producer import publish_extraction
from ..providers.github.artifacts import GitHubArtifactStore
from ..providers.github.auth import select_auth_token
from ..providers.github.client import GitHubRestClient
from ..store.base import ArtifactStore
from ..store.filesystem import FileArtifactStore

T = TypeVar("T")

app = typer.Typer(add_completion=False, pretty_exceptions_show_locals=False)


class _Context:
    def __init__(self, settings: MergeSettings, store_dir: str | None) -> None:
        self.settings = settings
        self.store_dir = store_dir


@app.callback()
def main(
    ctx: typer.Context,
    repo: str | None = typer.Option(
        None,
        envvar=["SNAPSHOT_MERGE_REPO", "GITHUB_REPOSITORY"],
        help="Repository holding the artifacts, in owner/name format",
    ),
    store_dir: str | None = typer.Option(
        None,
        envvar="SNAPSHOT_MERGE_STORE_DIR",
        help="Use a local directory as the artifact store instead of GitHub",
    ),
    work_dir: str = typer.Option(
        "_tmp", envvar="SNAPSHOT_MERGE_WORK_DIR", help="Scratch directory for downloads"
    ),
    extract_name: str = typer.Option(
        EXTRACT_ARTIFACT_NAME, help="Artifact name of extraction outputs"
    ),
    current_name: str = typer.Option(
        CURRENT_ARTIFACT_NAME, help="Artifact name of the current snapshot"
    ),
    snapshot_filename: str = typer.Option(
        "documentation.db", help="Snapshot file name inside artifacts"
    ),
    fold_executable: str = typer.Option(
        "hyaline", envvar="SNAPSHOT_MERGE_FOLD", help="Executable providing `merge documentation`"
    ),
    debug: bool = typer.Option(False, "--debug", envvar="RUNNER_DEBUG", help="Verbose logging"),
):
    """Fold extracted documentation snapshots into the current snapshot."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = MergeSettings(
        repo=repo,
        extract_artifact_name=extract_name,
        current_artifact_name=current_name,
        snapshot_filename=snapshot_filename,
        work_dir=Path(work_dir),
        fold_executable=fold_executable,
        debug=debug,
    )
    ctx.obj = _Context(settings=settings, store_dir=store_dir)


def _run(coro: Awaitable[T]) -> T:
    try:
        return asyncio.run(coro)
    except MergeError as exc:
        typer.secho(f"{exc.kind}: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=exc.exit_code)


async def _with_store(obj: _Context, func: Callable[[ArtifactStore], Awaitable[T]]) -> T:
    obj.settings.validate_names()
    if obj.store_dir:
        return await func(FileArtifactStore(root=Path(obj.store_dir)))
    if not obj.settings.repo:
        raise ConfigurationError("--repo (or GITHUB_REPOSITORY) is required without --store-dir")
    owner, name = obj.settings.owner_and_name()
    async with GitHubRestClient(token=select_auth_token()) as client:
        return await func(GitHubArtifactStore(client, owner, name))


@app.command()
def merge(ctx: typer.Context):
    """Run one incremental merge and publish the new checkpoint."""
    obj: _Context = ctx.obj
    fold = HyalineFold(obj.settings.fold_executable, debug=obj.settings.debug)

    async def _merge(store: ArtifactStore):
        return await MergeEngine(store, fold, obj.settings).run_merge()

    result = _run(_with_store(obj, _merge))
    typer.echo(json.dumps(result.to_json_dict(), sort_keys=True, ensure_ascii=True))


@app.command()
def status(ctx: typer.Context):
    """Show the current checkpoint and how many extractions are pending."""
    obj: _Context = ctx.obj

    async def _status(store: ArtifactStore):
        prior = await CheckpointStore(store, obj.settings).load_latest(obj.settings.work_dir)
        discovery = await discover_candidates(
            store,
            obj.settings.extract_artifact_name,
            prior.timestamp if prior else "",
            per_page=obj.settings.per_page,
        )
        return prior, discovery

    prior, discovery = _run(_with_store(obj, _status))
    print(f"[bold]checkpoint[/bold] {prior.timestamp if prior else '-'}")
    print(f"[bold]pending[/bold] {len(discovery.candidates)}")
    print(f"[bold]newest[/bold] {discovery.new_checkpoint or '-'}")


@app.command()
def current(
    ctx: typer.Context,
    dest: str = typer.Option(..., help="Directory to download the current snapshot into"),
):
    """Download the current snapshot, if one has been published."""
    obj: _Context = ctx.obj

    async def _current(store: ArtifactStore):
        return await CheckpointStore(store, obj.settings).load_latest(Path(dest))

    checkpoint = _run(_with_store(obj, _current))
    if checkpoint is None:
        typer.secho("no current snapshot published yet", err=True)
        raise typer.Exit(code=1)
    typer.echo(str(checkpoint.snapshot_path))


@app.command("publish-extraction")
def publish_extraction_cmd(
    ctx: typer.Context,
    snapshot: str = typer.Option(..., help="Extracted snapshot file to upload"),
):
    """Upload an extraction output for the next merge run."""
    obj: _Context = ctx.obj
    path = Path(snapshot)
    if not path.is_file():
        typer.secho(f"configuration error: snapshot not found: {path}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=ConfigurationError.exit_code)

    async def _publish(store: ArtifactStore):
        return await publish_extraction(store, path, obj.settings)

    artifact = _run(_with_store(obj, _publish))
    print(f"[bold]uploaded[/bold] {artifact.name} {artifact.id} {artifact.created_at}")

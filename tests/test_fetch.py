import pytest

from snapshot_merge.errors import FoldError
from snapshot_merge.merge.fetch import fetch_candidates
from snapshot_merge.models import Artifact


class RecordingStore:
    def __init__(self, missing=()):
        self.downloads = []
        self.missing = set(missing)

    async def download(self, artifact, dest):
        self.downloads.append(artifact.id)
        dest.mkdir(parents=True, exist_ok=True)
        if artifact.id not in self.missing:
            (dest / "documentation.db").write_text(str(artifact.id))
        return dest


def _artifacts(*ids):
    return [Artifact(id=i, name="x", created_at=f"2024-01-0{i}T00:00:00Z") for i in ids]


@pytest.mark.asyncio
async def test_downloads_oldest_first(tmp_path):
    store = RecordingStore()

    paths = await fetch_candidates(store, _artifacts(5, 4), tmp_path, "documentation.db")

    assert store.downloads == [4, 5]
    assert [p.read_text() for p in paths] == ["4", "5"]
    assert paths[0] == tmp_path / "4" / "documentation.db"


@pytest.mark.asyncio
async def test_no_candidates_downloads_nothing(tmp_path):
    store = RecordingStore()
    assert await fetch_candidates(store, [], tmp_path, "documentation.db") == []
    assert store.downloads == []


@pytest.mark.asyncio
async def test_artifact_without_snapshot_aborts(tmp_path):
    store = RecordingStore(missing={4})
    with pytest.raises(FoldError):
        await fetch_candidates(store, _artifacts(5, 4, 3), tmp_path, "documentation.db")
    assert store.downloads == [3, 4]

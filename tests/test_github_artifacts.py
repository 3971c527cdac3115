import io
import zipfile

import httpx
import pytest

from snapshot_merge.errors import ConfigurationError, TransientIOError
from snapshot_merge.models import Artifact
from snapshot_merge.providers.github.artifacts import GitHubArtifactStore
from snapshot_merge.providers.github.client import GitHubResponse, GitHubRestClient


def _artifact(id_, created_at, run_id=None):
    payload = {"id": id_, "name": "_extracted-documentation", "created_at": created_at}
    if run_id is not None:
        payload["workflow_run"] = {"id": run_id}
    return payload


def _zip(files: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buf.getvalue()


def _http_status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.github.com/x")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError("boom", request=request, response=response)


@pytest.mark.asyncio
async def test_list_pages_reads_artifacts_newest_first():
    calls = []

    async def fake_request(method, path, params=None, headers=None, raw=False):
        calls.append((path, params))
        return GitHubResponse(
            data={
                "total_count": 2,
                "artifacts": [
                    _artifact(12, "2024-01-02T00:00:00Z", run_id=99),
                    _artifact(11, "2024-01-01T00:00:00Z"),
                ],
            },
            headers={},
        )

    client = GitHubRestClient(token="x", request_func=fake_request)
    store = GitHubArtifactStore(client, "acme", "docs")
    pages = [page async for page in store.list_pages("_extracted-documentation", per_page=50)]

    assert calls == [
        (
            "/repos/acme/docs/actions/artifacts",
            {"name": "_extracted-documentation", "per_page": 50, "page": 1},
        )
    ]
    assert pages[0].items == (
        Artifact(id=12, name="_extracted-documentation", created_at="2024-01-02T00:00:00Z", run_id=99),
        Artifact(id=11, name="_extracted-documentation", created_at="2024-01-01T00:00:00Z"),
    )


@pytest.mark.asyncio
async def test_download_extracts_zip(tmp_path):
    async def fake_request(method, path, params=None, headers=None, raw=False):
        assert path == "/repos/acme/docs/actions/artifacts/7/zip"
        assert raw is True
        return GitHubResponse(
            data=_zip({"documentation.db": b"db", "checkpoint": b"2024-01-01T00:00:00Z"}),
            headers={},
            status_code=200,
        )

    client = GitHubRestClient(token="x", request_func=fake_request)
    store = GitHubArtifactStore(client, "acme", "docs")
    dest = await store.download(Artifact(id=7, name="n", created_at="t"), tmp_path / "7")

    assert (dest / "documentation.db").read_bytes() == b"db"
    assert (dest / "checkpoint").read_text() == "2024-01-01T00:00:00Z"


@pytest.mark.asyncio
async def test_download_rejects_traversal(tmp_path):
    async def fake_request(method, path, params=None, headers=None, raw=False):
        return GitHubResponse(data=_zip({"../evil": b"x"}), headers={})

    client = GitHubRestClient(token="x", request_func=fake_request)
    store = GitHubArtifactStore(client, "acme", "docs")
    with pytest.raises(TransientIOError):
        await store.download(Artifact(id=7, name="n", created_at="t"), tmp_path / "7")
    assert not (tmp_path / "evil").exists()


@pytest.mark.asyncio
async def test_not_found_is_a_configuration_error():
    async def fake_request(method, path, params=None, headers=None, raw=False):
        raise _http_status_error(404)

    client = GitHubRestClient(token="x", request_func=fake_request)
    store = GitHubArtifactStore(client, "acme", "missing")
    with pytest.raises(ConfigurationError):
        async for _ in store.list_pages("_current-documentation"):
            pass


@pytest.mark.asyncio
async def test_transport_failure_is_transient(tmp_path):
    attempts = {"count": 0}

    async def fake_request(method, path, params=None, headers=None, raw=False):
        attempts["count"] += 1
        raise httpx.ConnectError("network down")

    client = GitHubRestClient(token="x", request_func=fake_request, retry_attempts=1)
    store = GitHubArtifactStore(client, "acme", "docs")
    with pytest.raises(TransientIOError):
        await store.download(Artifact(id=1, name="n", created_at="t"), tmp_path / "1")
    assert attempts["count"] == 1


@pytest.mark.asyncio
async def test_upload_zips_files_and_reads_back_metadata(tmp_path):
    (tmp_path / "documentation.db").write_bytes(b"db")
    (tmp_path / "checkpoint").write_text("2024-01-01T00:00:00Z")
    uploads = []

    class FakeUploader:
        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb):
            return None

        async def upload_zip(self, name, data):
            uploads.append((name, data))
            return 42

    async def fake_request(method, path, params=None, headers=None, raw=False):
        assert path == "/repos/acme/docs/actions/artifacts/42"
        return GitHubResponse(
            data={
                "id": 42,
                "name": "_current-documentation",
                "created_at": "2024-01-03T00:00:00Z",
                "workflow_run": {"id": 5},
            },
            headers={},
        )

    client = GitHubRestClient(token="x", request_func=fake_request)
    store = GitHubArtifactStore(client, "acme", "docs", uploader=FakeUploader)
    artifact = await store.upload(
        "_current-documentation",
        [tmp_path / "documentation.db", tmp_path / "checkpoint"],
        tmp_path,
    )

    assert artifact == Artifact(
        id=42, name="_current-documentation", created_at="2024-01-03T00:00:00Z", run_id=5
    )
    name, data = uploads[0]
    assert name == "_current-documentation"
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert sorted(zf.namelist()) == ["checkpoint", "documentation.db"]

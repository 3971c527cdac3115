"""Upload side of GitHub Actions artifacts (v4 results service).

The public REST API can list and download artifacts but not create them;
uploads go through the results service of the running workflow job:

  CreateArtifact -> PUT zip to the signed blob URL -> FinalizeArtifact
"""

from __future__ import annotations

import base64
import json
import os
from dataclasses import dataclass

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ...errors import ConfigurationError, TransientIOError
from ...store.archive import sha256_bytes

ARTIFACT_SERVICE = "twirp/github.actions.results.api.v1.ArtifactService"
ARTIFACT_VERSION = 4


class RetryableResultsError(RuntimeError):
    pass


@dataclass(frozen=True)
class BackendIds:
    workflow_run_backend_id: str
    workflow_job_run_backend_id: str


def backend_ids_from_token(token: str) -> BackendIds:
    parts = token.split(".")
    if len(parts) != 3:
        raise ConfigurationError("ACTIONS_RUNTIME_TOKEN is not a JWT")
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(payload))
    except ValueError as exc:
        raise ConfigurationError("ACTIONS_RUNTIME_TOKEN payload is not JSON") from exc
    for scope in str(claims.get("scp") or "").split(" "):
        pieces = scope.split(":")
        if pieces[0] != "Actions.Results" or len(pieces) != 3:
            continue
        return BackendIds(
            workflow_run_backend_id=pieces[1],
            workflow_job_run_backend_id=pieces[2],
        )
    raise ConfigurationError("ACTIONS_RUNTIME_TOKEN has no Actions.Results scope")


class ActionsResultsClient:
    def __init__(
        self,
        results_url: str,
        runtime_token: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
        retry_attempts: int = 5,
    ) -> None:
        self.results_url = results_url.rstrip("/")
        self._token = runtime_token
        self._ids = backend_ids_from_token(runtime_token)
        self._retry_attempts = max(1, retry_attempts)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_env(cls, **kwargs) -> "ActionsResultsClient":
        results_url = os.getenv("ACTIONS_RESULTS_URL")
        runtime_token = os.getenv("ACTIONS_RUNTIME_TOKEN")
        if not results_url or not runtime_token:
            raise ConfigurationError(
                "artifact upload requires a GitHub Actions runtime "
                "(ACTIONS_RESULTS_URL and ACTIONS_RUNTIME_TOKEN)"
            )
        return cls(results_url, runtime_token, **kwargs)

    async def __aenter__(self) -> "ActionsResultsClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def upload_zip(self, name: str, data: bytes) -> int:
        """Create, fill and finalize one artifact; returns its artifact id."""
        ids = {
            "workflowRunBackendId": self._ids.workflow_run_backend_id,
            "workflowJobRunBackendId": self._ids.workflow_job_run_backend_id,
        }
        created = await self._twirp(
            "CreateArtifact", {**ids, "name": name, "version": ARTIFACT_VERSION}
        )
        upload_url = created.get("signedUploadUrl")
        if not created.get("ok") or not upload_url:
            raise TransientIOError(f"CreateArtifact rejected artifact {name!r}")

        await self._retrying(self._put_blob, upload_url, data)

        finalized = await self._twirp(
            "FinalizeArtifact",
            {
                **ids,
                "name": name,
                "size": str(len(data)),
                "hash": f"sha256:{sha256_bytes(data)}",
            },
        )
        if not finalized.get("ok") or not finalized.get("artifactId"):
            raise TransientIOError(f"FinalizeArtifact rejected artifact {name!r}")
        return int(finalized["artifactId"])

    async def _twirp(self, method: str, body: dict) -> dict:
        return await self._retrying(self._post, f"{self.results_url}/{ARTIFACT_SERVICE}/{method}", body)

    async def _retrying(self, func, *args):
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((httpx.TransportError, RetryableResultsError)),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
                stop=stop_after_attempt(self._retry_attempts),
                reraise=True,
            ):
                with attempt:
                    return await func(*args)
        except (httpx.HTTPError, RetryableResultsError) as exc:
            raise TransientIOError(f"artifact upload failed: {exc}") from exc
        raise RuntimeError("results service retries exhausted")

    async def _post(self, url: str, body: dict) -> dict:
        response = await self._client.post(
            url,
            json=body,
            headers={"Authorization": f"Bearer {self._token}"},
        )
        _check(response)
        return response.json()

    async def _put_blob(self, url: str, data: bytes) -> None:
        response = await self._client.put(
            url,
            content=data,
            headers={"x-ms-blob-type": "BlockBlob", "Content-Type": "application/zip"},
        )
        _check(response)


def _check(response: httpx.Response) -> None:
    if response.status_code == 429 or response.status_code >= 500:
        raise RetryableResultsError(f"results service retryable {response.status_code}")
    if response.status_code in {401, 403}:
        raise ConfigurationError(
            f"results service rejected the runtime token ({response.status_code})"
        )
    response.raise_for_status()

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping
from urllib.parse import parse_qs, urlparse

import httpx
from aiolimiter import AsyncLimiter
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

RETRYABLE_STATUS = frozenset({403, 429, 500, 502, 503, 504})


class RetryableGitHubError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class GitHubResponse:
    data: Any
    headers: Mapping[str, str]
    status_code: int | None = None


@dataclass(frozen=True)
class GitHubPage:
    items: list[Any]
    page: int
    response: GitHubResponse


@dataclass(frozen=True)
class PaginationGap:
    resource: str | None
    url: str | None
    page: int | None
    expected_page: int | None
    detail: str | None


RequestFunc = Callable[
    [str, str, dict | None, dict | None, bool],
    Awaitable[GitHubResponse],
]


class GitHubRestClient:
    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        limiter: AsyncLimiter | None = None,
        request_func: RequestFunc | None = None,
        timeout: float = 30.0,
        retry_attempts: int = 5,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._limiter = limiter or AsyncLimiter(8, 1)
        self._request_func = request_func
        self._timeout = timeout
        self._retry_attempts = max(1, retry_attempts)
        self._client: httpx.AsyncClient | None = None
        if request_func is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
                    "User-Agent": "snapshot-merge",
                },
                timeout=timeout,
            )

    async def __aenter__(self) -> "GitHubRestClient":
        if self._client is None and self._request_func is None:
            raise RuntimeError("GitHub client unavailable.")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client is not None:
            await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        headers: dict | None = None,
        *,
        raw: bool = False,
    ) -> GitHubResponse:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type((httpx.TransportError, RetryableGitHubError)),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
            stop=stop_after_attempt(self._retry_attempts),
            reraise=True,
        ):
            with attempt:
                async with self._limiter:
                    return await self._request(method, path, params, headers, raw)
        raise RuntimeError("GitHub request retries exhausted")

    async def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        headers: dict | None = None,
        raw: bool = False,
    ) -> GitHubResponse:
        if self._request_func is not None:
            return await self._request_func(method, path, params, headers, raw)

        if self._client is None:
            raise RuntimeError("HTTP client not initialized")
        # Artifact zips redirect to blob storage; httpx drops the
        # Authorization header when the redirect leaves the API origin.
        response = await self._client.request(
            method, path, params=params, headers=headers, follow_redirects=raw
        )
        if response.status_code in RETRYABLE_STATUS:
            raise RetryableGitHubError(
                f"GitHub retryable {response.status_code}",
                status_code=response.status_code,
            )
        response.raise_for_status()
        return GitHubResponse(
            data=response.content if raw else response.json(),
            headers=response.headers,
            status_code=response.status_code,
        )

    async def get_json(self, path: str, params: dict | None = None) -> Any:
        response = await self.request("GET", path, params=params)
        return response.data

    async def get_bytes(self, path: str) -> bytes:
        response = await self.request("GET", path, raw=True)
        return response.data

    async def paginate_pages(
        self,
        path: str,
        params: dict | None = None,
        *,
        items_key: str | None = None,
        headers: dict | None = None,
        on_gap: Callable[[PaginationGap], None] | None = None,
        resource: str | None = None,
    ) -> AsyncIterator[GitHubPage]:
        """Yield one page at a time; stop consuming to stop fetching."""
        next_path: str | None = path
        next_params = params or {}
        page = int(next_params.get("page", 1)) if next_params else 1
        while next_path:
            response = await self.request(
                "GET", next_path, params=next_params, headers=headers
            )
            data = response.data or []
            if items_key is not None and isinstance(data, Mapping):
                data = data.get(items_key) or []
            next_path, next_params = _next_page(response.headers)
            if on_gap and not data and next_path:
                on_gap(
                    PaginationGap(
                        resource=resource,
                        url=next_path,
                        page=page,
                        expected_page=page,
                        detail="empty page with next link",
                    )
                )
            yield GitHubPage(items=list(data), page=page, response=response)
            if next_path and on_gap:
                next_page = _extract_page(next_params)
                expected = page + 1
                if next_page is not None and next_page != expected:
                    on_gap(
                        PaginationGap(
                            resource=resource,
                            url=next_path,
                            page=next_page,
                            expected_page=expected,
                            detail="non-sequential page",
                        )
                    )
            page = _extract_page(next_params) or (page + 1)


def _next_page(headers: Mapping[str, str]) -> tuple[str | None, dict | None]:
    link = headers.get("Link") or headers.get("link")
    if not link:
        return None, None
    for part in link.split(","):
        section = part.strip()
        if 'rel="next"' not in section:
            continue
        url = section.split(";")[0].strip().lstrip("<").rstrip(">")
        parsed = urlparse(url)
        params = {k: v[0] for k, v in parse_qs(parsed.query).items()}
        return parsed.path, params
    return None, None


def _extract_page(params: dict | None) -> int | None:
    if not params:
        return None
    page_val = params.get("page")
    if page_val is None:
        return None
    try:
        return int(page_val)
    except (TypeError, ValueError):
        return None

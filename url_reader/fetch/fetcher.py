"""
HTTP page fetching.

Pages are fetched with httpx, following redirects and sending the configured
User-Agent. A fetch is a single attempt: retry policy belongs to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx


@dataclass
class FetchResult:
    """Result of an HTTP fetch operation.

    status_code is None for network-level failures, in which case error is
    set and content/text are None. A non-2xx response still carries its body.

    Attributes:
        url: The URL that was requested
        status_code: HTTP status code, or None if no response was received
        content: Raw response body bytes
        text: Response body decoded with the response encoding
        error: Error message if the request failed, None otherwise
    """
    url: str
    status_code: int | None
    content: bytes | None
    text: str | None
    error: str | None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code is not None and 200 <= self.status_code < 300


class HTTPFetcher:
    """Fetch pages over HTTP with httpx.

    Args:
        user_agent: User-Agent header sent with every request
        timeout: Request timeout in seconds
        trust_env: Whether to respect system proxy settings
        transport: Optional httpx transport, used by tests to stub the network
    """

    def __init__(
        self,
        user_agent: str,
        timeout: float = 20.0,
        trust_env: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.user_agent = user_agent
        self.timeout = timeout
        self.trust_env = trust_env
        self._transport = transport

    async def fetch(self, url: str) -> FetchResult:
        headers = {"User-Agent": self.user_agent}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=headers,
                follow_redirects=True,
                trust_env=self.trust_env,
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return FetchResult(
                url=url,
                status_code=None,
                content=None,
                text=None,
                error=f"{type(exc).__name__}: {exc}",
            )

        return FetchResult(
            url=url,
            status_code=resp.status_code,
            content=resp.content,
            text=resp.text,
            error=None,
        )

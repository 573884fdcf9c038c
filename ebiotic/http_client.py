"""Shared asynchronous HTTP client used by every service."""

import logging
from typing import Optional, Sequence

import httpx

from .config import MAX_RETRIES, REQUEST_TIMEOUT, USER_AGENT
from .errors import NetworkError

logger = logging.getLogger(__name__)

FormData = Sequence[tuple[str, str]]


class EbioticClient:
    """Thin wrapper around a pooled ``httpx.AsyncClient``.

    Create one per process (or per caller session) and pass it to every
    service call. The wrapped client is never reconfigured after creation,
    so concurrent tasks can share it.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = REQUEST_TIMEOUT,
        retries: int = MAX_RETRIES,
        user_agent: str = USER_AGENT,
    ):
        if client is not None:
            # Caller keeps ownership of a client it configured itself
            self.client = client
            self._owns_client = False
            return

        # Retries cover connection failures only; HTTP error statuses are
        # reported to the caller.
        transport = httpx.AsyncHTTPTransport(retries=retries)
        self.client = httpx.AsyncClient(
            transport=transport,
            timeout=timeout,
            headers={"User-Agent": user_agent},
            follow_redirects=True,
        )
        self._owns_client = True

    async def __aenter__(self) -> "EbioticClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the connection pool if this wrapper created it."""
        if self._owns_client:
            await self.client.aclose()

    async def get(self, url: str, params: Optional[dict] = None) -> str:
        """GET ``url`` and return the response body as text."""
        logger.debug("GET %s params=%s", url, params)
        return await self._send("GET", url, params=params)

    async def post_form(self, url: str, data: FormData) -> str:
        """POST ``data`` form-encoded, keeping the order of the pairs."""
        logger.debug("POST %s fields=%s", url, [key for key, _ in data])
        return await self._send("POST", url, data=list(data))

    async def _send(self, method: str, url: str, params=None, data=None) -> str:
        try:
            if data is None:
                resp = await self.client.request(method, url, params=params)
            else:
                # httpx only form-encodes dicts; encode the pairs ourselves so
                # repeated keys and field order survive.
                body = str(httpx.QueryParams(data))
                resp = await self.client.request(
                    method,
                    url,
                    params=params,
                    content=body.encode(),
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(
                f"{method} {url} returned HTTP {e.response.status_code}",
                url=url,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {url} failed: {e}", url=url) from e
        return resp.text

"""
httpx Transport
Async transport with connection pooling.
"""

from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Mapping, Optional

import httpx

from ..errors import TransportError
from .base import Transport, TransportResponse


def _no_cookie_jar() -> CookieJar:
    # Session cookies are attached explicitly per request, never from a jar.
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


class HttpxTransport(Transport):
    """
    Transport over a shared ``httpx.AsyncClient``.

    Many requests can be in flight concurrently on one instance; the pool is
    bounded by ``max_connections``.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        keep_alive: bool = True,
        max_connections: int = 50,
        max_keepalive_connections: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)

        if client is not None:
            self._client = client
            self._owns_client = False
            return

        limits = httpx.Limits(
            max_connections=int(max_connections),
            max_keepalive_connections=int(max_keepalive_connections) if keep_alive else 0,
        )
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            limits=limits,
            transport=transport,
            cookies=_no_cookie_jar(),
        )
        self._owns_client = True

    async def send(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        method = method.upper()
        try:
            resp = await self._client.request(
                method,
                path,
                headers=dict(headers or {}),
                content=body,
                timeout=self.timeout if timeout is None else float(timeout),
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out: {type(e).__name__}", url=path, method=method) from e
        except httpx.TransportError as e:
            raise TransportError(f"No response received from API: {type(e).__name__}: {e}", url=path, method=method) from e

        return TransportResponse(
            status=resp.status_code,
            headers={k.lower(): v for k, v in resp.headers.items()},
            body=resp.content,
            set_cookie=resp.headers.get_list("set-cookie"),
            url=path,
            method=method,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

"""
requests Transport
Blocking ``requests.Session`` transport, run off the event loop.
"""

import asyncio
import functools
from typing import Mapping, Optional

import requests
from requests.adapters import HTTPAdapter

from ..errors import TransportError
from .base import Transport, TransportResponse


class RequestsTransport(Transport):
    """
    Transport for environments that already standardise on ``requests``.

    Each call runs in the loop's default executor so a slow request never
    blocks other coroutines.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        pool_maxsize: int = 50,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self._owns_session = session is None
        self.session = session or requests.Session()
        if self._owns_session:
            adapter = HTTPAdapter(pool_connections=10, pool_maxsize=int(pool_maxsize))
            self.session.mount("https://", adapter)
            self.session.mount("http://", adapter)

    def _send_sync(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]],
        body: Optional[bytes],
        timeout: float,
    ) -> TransportResponse:
        url = self.base_url + path
        try:
            resp = self.session.request(method, url, headers=dict(headers or {}), data=body, timeout=timeout)
        except requests.Timeout as e:
            raise TransportError(f"Request timed out: {type(e).__name__}", url=path, method=method) from e
        except requests.RequestException as e:
            raise TransportError(f"No response received from API: {type(e).__name__}: {e}", url=path, method=method) from e

        raw_headers = getattr(resp.raw, "headers", None)
        if raw_headers is not None and hasattr(raw_headers, "getlist"):
            set_cookie = list(raw_headers.getlist("Set-Cookie"))
        else:
            set_cookie = [resp.headers["set-cookie"]] if "set-cookie" in resp.headers else []

        return TransportResponse(
            status=resp.status_code,
            headers={k.lower(): v for k, v in resp.headers.items()},
            body=resp.content or b"",
            set_cookie=set_cookie,
            url=path,
            method=method,
        )

    async def send(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        loop = asyncio.get_running_loop()
        call = functools.partial(
            self._send_sync,
            method.upper(),
            path,
            headers,
            body,
            self.timeout if timeout is None else float(timeout),
        )
        return await loop.run_in_executor(None, call)

    async def aclose(self) -> None:
        if self._owns_session:
            self.session.close()

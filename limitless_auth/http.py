"""
HTTP Client
JSON request layer over a Transport with session-cookie handling.
"""

import json
from typing import Any, Dict, Mapping, Optional

from .auth.models import SessionCredential
from .auth.session import SessionCarrier
from .errors import APIError, LimitlessError, RateLimitError, TransportError
from .logger import AuthLogger, NoOpLogger, mask_token
from .transport.base import Transport, TransportResponse


DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def extract_error_message(data: Any, fallback: str) -> str:
    """Best-effort human-readable message from an error body."""
    if data is None or data == "":
        return fallback
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, list):
            parts = []
            for item in message:
                if isinstance(item, dict):
                    details = ", ".join(
                        f"{k}: {v}" for k, v in item.items() if v not in ("", None)
                    )
                    parts.append(details or json.dumps(item))
                else:
                    parts.append(str(item))
            joined = " | ".join(p for p in parts if p.strip())
            return joined or str(data.get("error") or json.dumps(data))
        for key in ("message", "error", "msg"):
            if data.get(key):
                return str(data[key])
        if data.get("errors"):
            return json.dumps(data["errors"])
        return json.dumps(data)
    return str(data)


class HttpClient:
    """
    Sends JSON requests through a Transport.

    The active credential from the SessionCarrier is attached as a cookie
    unless a call passes its own ``credential`` (used for verify/logout so
    the shared slot is never swapped).
    """

    def __init__(
        self,
        transport: Transport,
        carrier: Optional[SessionCarrier] = None,
        logger: Optional[AuthLogger] = None,
        additional_headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ):
        self.transport = transport
        self.carrier = carrier or SessionCarrier()
        self.logger = logger or NoOpLogger()
        self.timeout = timeout
        self.default_headers: Dict[str, str] = dict(DEFAULT_HEADERS)
        if additional_headers:
            self.default_headers.update(additional_headers)

    # -------------------------------------------------------------------------
    # Session helpers
    # -------------------------------------------------------------------------

    def set_session_cookie(self, token: str) -> None:
        self.carrier.set(SessionCredential(token))

    def clear_session_cookie(self) -> None:
        self.carrier.clear()

    @staticmethod
    def extract_cookies(response: TransportResponse) -> Dict[str, str]:
        return response.cookies()

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    def _build_headers(
        self,
        headers: Optional[Mapping[str, str]],
        credential: Optional[SessionCredential],
        has_body: bool,
    ) -> Dict[str, str]:
        merged = dict(self.default_headers)
        if not has_body:
            merged.pop("Content-Type", None)
        if headers:
            merged.update(headers)

        cookie = self.carrier.cookie_for(credential) if credential else self.carrier.cookie_header()
        if cookie:
            merged["Cookie"] = cookie
        return merged

    def _loggable_headers(self, headers: Mapping[str, str]) -> Dict[str, str]:
        safe = {}
        for k, v in headers.items():
            if k.lower() in ("cookie", "x-signature"):
                safe[k] = mask_token(v, visible=12)
            else:
                safe[k] = v
        return safe

    async def request(
        self,
        method: str,
        path: str,
        data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        credential: Optional[SessionCredential] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        """Send a request; non-2xx responses raise APIError."""
        method = method.upper()
        body = json.dumps(data).encode("utf-8") if data is not None else None
        merged = self._build_headers(headers, credential, body is not None)

        self.logger.debug(f"→ {method} {path}", {"headers": self._loggable_headers(merged)})

        try:
            resp = await self.transport.send(
                method,
                path,
                headers=merged,
                body=body,
                timeout=timeout if timeout is not None else self.timeout,
            )
        except LimitlessError:
            raise
        except Exception as e:
            raise TransportError(f"Transport failed: {type(e).__name__}: {e}", url=path, method=method) from e

        if resp.ok:
            self.logger.debug(f"✓ {resp.status} {method} {path}")
            return resp

        payload = resp.parsed()
        self.logger.debug(f"✗ {resp.status} {method} {path}", {"error": payload})
        message = extract_error_message(payload, f"Request failed with status code {resp.status}")
        if resp.status == 429:
            raise RateLimitError(message, data=payload, url=path, method=method)
        raise APIError(message, resp.status, payload, url=path, method=method)

    async def get(self, path: str, **kwargs) -> Any:
        resp = await self.request("GET", path, **kwargs)
        return resp.parsed()

    async def post(self, path: str, data: Any = None, **kwargs) -> Any:
        resp = await self.request("POST", path, data=data, **kwargs)
        return resp.parsed()

    async def post_with_response(self, path: str, data: Any = None, **kwargs) -> TransportResponse:
        return await self.request("POST", path, data=data, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        resp = await self.request("DELETE", path, **kwargs)
        return resp.parsed()

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

"""
Transport Base Classes
Send-request/receive-response capability consumed by HttpClient.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


@dataclass
class TransportResponse:
    """Raw response: status, lower-cased headers, body bytes and Set-Cookie lines."""
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    set_cookie: List[str] = field(default_factory=list)
    url: Optional[str] = None
    method: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.text)

    def parsed(self) -> Any:
        """JSON when the body is JSON, the decoded text otherwise, None if empty."""
        if not self.body:
            return None
        content_type = self.headers.get("content-type", "")
        if "json" in content_type:
            try:
                return self.json()
            except ValueError:
                return self.text
        return self.text

    def cookies(self) -> Dict[str, str]:
        """Name/value pairs from the Set-Cookie headers (attributes dropped)."""
        cookies: Dict[str, str] = {}
        for line in self.set_cookie:
            pair = line.split(";", 1)[0]
            name, sep, value = pair.partition("=")
            if not sep or not name.strip():
                continue
            cookies[name.strip()] = value.strip()
        return cookies


class Transport(ABC):
    """Abstract HTTP transport."""

    @abstractmethod
    async def send(
        self,
        method: str,
        path: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[bytes] = None,
        timeout: Optional[float] = None,
    ) -> TransportResponse:
        """
        Send one request.

        Returns the response for every status code. Raises TransportError
        when no response was received (connection failure, timeout).
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release pooled connections."""
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

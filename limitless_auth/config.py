"""
Client Configuration
Connection settings plus helpers that wire transport, carrier and logger.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from .auth.session import DEFAULT_SESSION_COOKIE, SessionCarrier
from .http import HttpClient
from .logger import AuthLogger, ConsoleLogger, NoOpLogger, normalize_level
from .transport.httpx_transport import HttpxTransport


DEFAULT_API_URL = "https://api.limitless.exchange"


@dataclass
class ClientConfig:
    """Configuration for HttpClient / Authenticator."""

    base_url: str = DEFAULT_API_URL
    timeout: float = 30.0
    keep_alive: bool = True
    max_connections: int = 50
    max_keepalive_connections: int = 10
    additional_headers: Dict[str, str] = field(default_factory=dict)
    session_cookie_name: str = DEFAULT_SESSION_COOKIE
    log_level: Optional[str] = None

    def __post_init__(self):
        self.base_url = (self.base_url or DEFAULT_API_URL).rstrip("/")
        self.timeout = float(self.timeout)
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.log_level is not None:
            self.log_level = normalize_level(self.log_level)

    @classmethod
    def from_env(cls, **overrides) -> "ClientConfig":
        """
        Build from environment variables.

        LIMITLESS_API_URL, LIMITLESS_TIMEOUT, LIMITLESS_LOG_LEVEL
        """
        values = {}
        if os.getenv("LIMITLESS_API_URL"):
            values["base_url"] = os.environ["LIMITLESS_API_URL"]
        if os.getenv("LIMITLESS_TIMEOUT"):
            try:
                values["timeout"] = float(os.environ["LIMITLESS_TIMEOUT"])
            except ValueError:
                raise ValueError(f"LIMITLESS_TIMEOUT must be a number, got {os.environ['LIMITLESS_TIMEOUT']!r}") from None
        if os.getenv("LIMITLESS_LOG_LEVEL"):
            values["log_level"] = os.environ["LIMITLESS_LOG_LEVEL"]
        values.update(overrides)
        return cls(**values)

    def make_logger(self) -> AuthLogger:
        if self.log_level is None:
            return NoOpLogger()
        return ConsoleLogger(self.log_level)


def build_http_client(
    config: Optional[ClientConfig] = None,
    logger: Optional[AuthLogger] = None,
    carrier: Optional[SessionCarrier] = None,
    **transport_kwargs,
) -> HttpClient:
    """HttpClient over an HttpxTransport configured from ``config``."""
    config = config or ClientConfig()
    logger = logger or config.make_logger()
    transport = HttpxTransport(
        config.base_url,
        timeout=config.timeout,
        keep_alive=config.keep_alive,
        max_connections=config.max_connections,
        max_keepalive_connections=config.max_keepalive_connections,
        **transport_kwargs,
    )
    logger.debug("HTTP client initialized", {
        "base_url": config.base_url,
        "keep_alive": config.keep_alive,
        "max_connections": config.max_connections,
    })
    return HttpClient(
        transport,
        carrier=carrier or SessionCarrier(config.session_cookie_name),
        logger=logger,
        additional_headers=config.additional_headers,
        timeout=config.timeout,
    )

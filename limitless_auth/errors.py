"""
Error Taxonomy
Exceptions raised by transports, the retry executor and the auth session.

Retry classification is driven by the ``status`` attribute: only errors
whose status is listed in a RetryPolicy are ever retried.
"""

from enum import Enum
from typing import Any, Optional


class AuthStep(Enum):
    """Protocol step at which an error surfaced."""
    CHALLENGE = "challenge"
    SIGN = "sign"
    SUBMIT = "submit"
    VERIFY = "verify"
    REVOKE = "revoke"


class LimitlessError(Exception):
    """Base class for every error raised by this package."""

    status: Optional[int] = None

    def __init__(self, message: str = "", step: Optional[AuthStep] = None):
        super().__init__(message)
        self.message = message
        self.step = step

    def with_step(self, step: AuthStep) -> "LimitlessError":
        """Tag the error with the protocol step, keeping an earlier tag."""
        if self.step is None:
            self.step = step
        return self

    def __str__(self) -> str:
        if self.step is not None:
            return f"[{self.step.value}] {self.message}"
        return self.message


class TransportError(LimitlessError):
    """Connectivity failure or timeout; no usable response was received."""

    def __init__(
        self,
        message: str = "No response received from API",
        status: Optional[int] = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
        step: Optional[AuthStep] = None,
    ):
        super().__init__(message, step=step)
        self.status = status
        self.url = url
        self.method = method


class APIError(LimitlessError):
    """The server answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status: int,
        data: Any = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
        step: Optional[AuthStep] = None,
    ):
        super().__init__(message, step=step)
        self.status = int(status)
        self.data = data
        self.url = url
        self.method = method

    def is_auth_error(self) -> bool:
        return self.status in (401, 403)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status}, method={self.method!r}, url={self.url!r})"


class RateLimitError(APIError):
    """429 Too Many Requests."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        status: int = 429,
        data: Any = None,
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        super().__init__(message, status, data, url, method)


class ProtocolError(LimitlessError):
    """The server responded but the payload does not have the expected shape."""


class SigningError(LimitlessError):
    """The signer refused or failed to sign. Never retried."""


class AuthenticationError(LimitlessError):
    """
    The server rejected the signature or identity, or the client type is
    unsupported. A new attempt must start from a fresh challenge.
    """

    def __init__(self, message: str = "Authentication failed", status: Optional[int] = None, step: Optional[AuthStep] = None):
        super().__init__(message, step=step)
        self.status = status


class SessionInvalidError(LimitlessError):
    """The server does not recognise the session credential (unknown or expired)."""

    def __init__(self, message: str = "Session is invalid or expired", status: Optional[int] = None, step: Optional[AuthStep] = None):
        super().__init__(message, step=step)
        self.status = status

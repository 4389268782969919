"""
Authenticated Client
Re-authenticates once a session expires and retries the call.
"""

from typing import Any, Awaitable, Callable, Optional, Union

from ..errors import APIError, SessionInvalidError
from ..logger import AuthLogger, NoOpLogger
from .authenticator import Authenticator
from .models import AuthResult, ClientType


class AuthenticatedClient:
    """
    Runs operations that need a live session.

    On 401/403 the session is re-established from a fresh challenge and the
    operation runs again, at most ``max_retries`` times. Any other error
    propagates unchanged.

    Usage:
        client = AuthenticatedClient(authenticator, client="eoa")
        orders = await client.with_retry(lambda: http.get("/orders"))
    """

    def __init__(
        self,
        authenticator: Authenticator,
        client: Union[ClientType, str] = ClientType.EOA,
        max_retries: int = 1,
        logger: Optional[AuthLogger] = None,
    ):
        if int(max_retries) < 0:
            raise ValueError("max_retries must be >= 0")
        self.authenticator = authenticator
        self.client = ClientType.parse(client)
        self.max_retries = int(max_retries)
        self.logger = logger or NoOpLogger()
        self.last_result: Optional[AuthResult] = None

    @staticmethod
    def _is_expired_session(error: Exception) -> bool:
        if isinstance(error, SessionInvalidError):
            return True
        return isinstance(error, APIError) and error.is_auth_error()

    async def with_retry(self, fn: Callable[[], Awaitable[Any]]) -> Any:
        attempts = 0
        while True:
            try:
                return await fn()
            except Exception as e:
                if not self._is_expired_session(e) or attempts >= self.max_retries:
                    raise
                self.logger.info("Authentication expired, re-authenticating...", {
                    "attempt": attempts + 1,
                    "max_retries": self.max_retries,
                })
                await self.reauthenticate()
                attempts += 1

    async def reauthenticate(self) -> AuthResult:
        self.logger.debug("Re-authenticating with API")
        self.last_result = await self.authenticator.authenticate(client=self.client)
        self.logger.info("Re-authentication successful")
        return self.last_result

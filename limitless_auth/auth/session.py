"""
Session Carrier
Thread-safe slot holding the active session credential.
"""

import threading
from typing import Optional

from .models import SessionCredential


DEFAULT_SESSION_COOKIE = "limitless_session"


class SessionCarrier:
    """
    Holds a reference to the credential attached to outgoing requests.

    No validation happens here; the authenticator decides what goes in.
    Credentials are immutable, so readers always see a whole value.
    """

    def __init__(self, cookie_name: str = DEFAULT_SESSION_COOKIE, credential: Optional[SessionCredential] = None):
        self.cookie_name = cookie_name
        self._credential = credential
        self._lock = threading.Lock()

    def set(self, credential: SessionCredential) -> None:
        with self._lock:
            self._credential = credential

    def clear(self) -> None:
        with self._lock:
            self._credential = None

    def clear_if(self, credential: SessionCredential) -> bool:
        """Clear only when ``credential`` is still the active one."""
        with self._lock:
            if self._credential is not None and self._credential.token == credential.token:
                self._credential = None
                return True
            return False

    def current(self) -> Optional[SessionCredential]:
        with self._lock:
            return self._credential

    def cookie_for(self, credential: SessionCredential) -> str:
        return f"{self.cookie_name}={credential.token}"

    def cookie_header(self) -> Optional[str]:
        credential = self.current()
        if credential is None:
            return None
        return self.cookie_for(credential)

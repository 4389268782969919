"""
Auth - wallet challenge-response login and session handling
"""

from .models import (
    AuthResult,
    ClientType,
    Identity,
    Profile,
    SessionCredential,
    SessionMode,
)
from .session import SessionCarrier, DEFAULT_SESSION_COOKIE
from .signer import MessageSigner, SignedMessage, WalletSigner
from .authenticator import Authenticator, AuthenticationSession, AuthState
from .authenticated_client import AuthenticatedClient

__all__ = [
    "AuthResult",
    "ClientType",
    "Identity",
    "Profile",
    "SessionCredential",
    "SessionMode",
    "SessionCarrier",
    "DEFAULT_SESSION_COOKIE",
    "MessageSigner",
    "SignedMessage",
    "WalletSigner",
    "Authenticator",
    "AuthenticationSession",
    "AuthState",
    "AuthenticatedClient",
]

"""
limitless-auth - Wallet session authentication & resilient HTTP for the Limitless Exchange API
Challenge-response login, session credential lifecycle and policy-driven retries.
"""

from .version import __version__

# Errors
from .errors import (
    AuthStep,
    LimitlessError,
    TransportError,
    APIError,
    RateLimitError,
    ProtocolError,
    SigningError,
    AuthenticationError,
    SessionInvalidError,
)

# Logging
from .logger import AuthLogger, NoOpLogger, ConsoleLogger

# Auth (import before http: http depends on auth.models)
from .auth import (
    AuthResult,
    ClientType,
    Identity,
    Profile,
    SessionCredential,
    SessionMode,
    SessionCarrier,
    MessageSigner,
    SignedMessage,
    WalletSigner,
    Authenticator,
    AuthenticationSession,
    AuthState,
    AuthenticatedClient,
)

# Retry
from .retry import (
    RetryPolicy,
    RetryExecutor,
    RetryableClient,
    with_retry,
    retry_on_errors,
)

# Transport / HTTP
from .transport import Transport, TransportResponse, HttpxTransport, RequestsTransport
from .http import HttpClient
from .config import ClientConfig, build_http_client

__all__ = [
    # Version
    '__version__',

    # Errors
    'AuthStep',
    'LimitlessError',
    'TransportError',
    'APIError',
    'RateLimitError',
    'ProtocolError',
    'SigningError',
    'AuthenticationError',
    'SessionInvalidError',

    # Logging
    'AuthLogger',
    'NoOpLogger',
    'ConsoleLogger',

    # Auth
    'AuthResult',
    'ClientType',
    'Identity',
    'Profile',
    'SessionCredential',
    'SessionMode',
    'SessionCarrier',
    'MessageSigner',
    'SignedMessage',
    'WalletSigner',
    'Authenticator',
    'AuthenticationSession',
    'AuthState',
    'AuthenticatedClient',

    # Retry
    'RetryPolicy',
    'RetryExecutor',
    'RetryableClient',
    'with_retry',
    'retry_on_errors',

    # Transport / HTTP
    'Transport',
    'TransportResponse',
    'HttpxTransport',
    'RequestsTransport',
    'HttpClient',
    'ClientConfig',
    'build_http_client',
]

"""
Authentication Session
Challenge-response login and session credential lifecycle.

Flow:
    GET  /auth/signing-message  -> challenge (text)
    sign(challenge)             -> x-account / x-signing-message / x-signature
    POST /auth/login            -> Set-Cookie: limitless_session=<token>, profile JSON
    GET  /auth/verify-auth      -> wallet address
    POST /auth/logout           -> revoke

Only the network sub-calls are retried, and only for transient statuses.
A rejected login is never replayed: the next attempt fetches a new challenge.
"""

import asyncio
import dataclasses
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

from pydantic import ValidationError

from ..errors import (
    APIError,
    AuthenticationError,
    AuthStep,
    LimitlessError,
    ProtocolError,
    SessionInvalidError,
    SigningError,
)
from ..logger import AuthLogger, NoOpLogger, mask_token
from ..retry import RetryExecutor, RetryPolicy
from .models import AuthResult, ClientType, Identity, Profile, SessionCredential, SessionMode, same_address
from .session import SessionCarrier
from .signer import MessageSigner, SignedMessage, auth_headers

if TYPE_CHECKING:
    from ..http import HttpClient


SIGNING_MESSAGE_PATH = "/auth/signing-message"
LOGIN_PATH = "/auth/login"
VERIFY_PATH = "/auth/verify-auth"
LOGOUT_PATH = "/auth/logout"

# Explicit rejections of a login; never retried.
REJECTION_STATUSES = frozenset({400, 401, 403, 404, 409, 422})
INVALID_SESSION_STATUSES = frozenset({401, 403})


class AuthState(Enum):
    IDLE = "idle"
    CHALLENGE_REQUESTED = "challenge_requested"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


_TRANSITIONS = {
    AuthState.IDLE: {AuthState.CHALLENGE_REQUESTED, AuthState.REJECTED},
    AuthState.CHALLENGE_REQUESTED: {AuthState.SIGNED, AuthState.REJECTED},
    AuthState.SIGNED: {AuthState.SUBMITTED, AuthState.REJECTED},
    AuthState.SUBMITTED: {AuthState.AUTHENTICATED, AuthState.REJECTED},
    AuthState.AUTHENTICATED: set(),
    AuthState.REJECTED: set(),
}


class AuthAttempt:
    """State of one authenticate() call. Never shared between calls."""

    def __init__(self, identity: Identity):
        self.identity = identity
        self.state = AuthState.IDLE
        self.challenge: Optional[str] = None

    def advance(self, state: AuthState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid auth transition {self.state.value} -> {state.value}")
        self.state = state


def _excluding(policy: RetryPolicy, statuses: frozenset) -> RetryPolicy:
    """Copy of ``policy`` that treats ``statuses`` as terminal."""
    if not policy.status_codes & statuses:
        return policy
    return dataclasses.replace(policy, status_codes=policy.status_codes - statuses)


@contextmanager
def _at_step(step: AuthStep):
    """Tag package errors with the protocol step they surfaced in."""
    try:
        yield
    except LimitlessError as e:
        e.with_step(step)
        raise


class Authenticator:
    """
    Drives the challenge-response protocol and owns the resulting credential.

    Args:
        http_client: HttpClient bound to the API
        signer: wallet signer
        carrier: slot receiving the active credential (defaults to the client's)
        retry_policy: policy for individual network sub-calls
        executor: RetryExecutor to run sub-calls with
        logger: logging sink
        session_cookie_name: cookie carrying the session token
    """

    def __init__(
        self,
        http_client: "HttpClient",
        signer: MessageSigner,
        carrier: Optional[SessionCarrier] = None,
        retry_policy: Optional[RetryPolicy] = None,
        executor: Optional[RetryExecutor] = None,
        logger: Optional[AuthLogger] = None,
        session_cookie_name: Optional[str] = None,
    ):
        self.http = http_client
        self.signer = signer
        self.carrier = carrier or http_client.carrier
        self.retry_policy = retry_policy or RetryPolicy()
        self.logger = logger or NoOpLogger()
        self.executor = executor or RetryExecutor(logger=self.logger)
        self.session_cookie_name = session_cookie_name or self.carrier.cookie_name
        # Final state of the most recently finished authenticate() call.
        # Concurrent calls each track their own AuthAttempt.
        self.last_state = AuthState.IDLE

    # -------------------------------------------------------------------------
    # Challenge
    # -------------------------------------------------------------------------

    async def get_signing_message(self, cancel_event: Optional[asyncio.Event] = None) -> str:
        """Request a fresh challenge."""
        self.logger.debug("Requesting signing message from API")
        with _at_step(AuthStep.CHALLENGE):
            message = await self.executor.execute(
                lambda: self.http.get(SIGNING_MESSAGE_PATH),
                self.retry_policy,
                cancel_event,
            )
            if not isinstance(message, str) or not message.strip():
                raise ProtocolError("Server returned an empty or malformed signing message")
        self.logger.debug("Received signing message", {"length": len(message)})
        return message

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    def _resolve_identity(
        self,
        identity: Optional[Identity],
        client: Optional[Union[ClientType, str]],
        smart_wallet: Optional[str],
    ) -> Identity:
        if identity is not None:
            if client is not None or smart_wallet is not None:
                raise TypeError("pass either identity or client/smart_wallet, not both")
        else:
            identity = Identity(
                address=self.signer.address,
                client_type=ClientType.parse(client if client is not None else ClientType.EOA),
                smart_wallet=smart_wallet,
            )
        identity.validate()
        return identity

    async def _sign(self, attempt: AuthAttempt) -> SignedMessage:
        try:
            signed = await self.signer.sign(attempt.challenge.encode("utf-8"))
        except SigningError:
            raise
        except Exception as e:
            raise SigningError(f"Signer failed: {type(e).__name__}: {e}") from e

        if not same_address(signed.address, attempt.identity.address):
            raise AuthenticationError(
                f"Signer address {signed.address} does not match identity {attempt.identity.address}"
            )
        return signed

    async def _submit(self, attempt: AuthAttempt, signed: SignedMessage, cancel_event: Optional[asyncio.Event]):
        headers = auth_headers(attempt.challenge, signed)
        payload = attempt.identity.login_payload()
        try:
            return await self.executor.execute(
                lambda: self.http.post_with_response(LOGIN_PATH, payload, headers=headers),
                _excluding(self.retry_policy, REJECTION_STATUSES),
                cancel_event,
            )
        except APIError as e:
            if e.status in REJECTION_STATUSES:
                raise AuthenticationError(f"Login rejected: {e.message}", status=e.status) from e
            raise

    def _session_mode(self, status: int, body) -> SessionMode:
        if isinstance(body, dict):
            mode = body.get("mode")
            if isinstance(mode, str) and mode.lower() in (m.value for m in SessionMode):
                return SessionMode(mode.lower())
            if isinstance(body.get("isNewUser"), bool):
                return SessionMode.NEW if body["isNewUser"] else SessionMode.RETURNING
        return SessionMode.NEW if status == 201 else SessionMode.RETURNING

    async def authenticate(
        self,
        identity: Optional[Identity] = None,
        client: Optional[Union[ClientType, str]] = None,
        smart_wallet: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AuthResult:
        """
        Run one full challenge -> sign -> login exchange.

        Without ``identity`` the signer's address is used with ``client``
        (EOA by default). Passing both ``identity`` and ``client`` or
        ``smart_wallet`` is a TypeError.
        On success the credential becomes the carrier's active credential,
        unless the call was cancelled first.
        """
        identity = self._resolve_identity(identity, client, smart_wallet)
        attempt = AuthAttempt(identity)

        self.logger.info("Starting authentication", {
            "client": identity.client_type.value,
            "has_smart_wallet": bool(identity.smart_wallet),
        })

        try:
            attempt.advance(AuthState.CHALLENGE_REQUESTED)
            attempt.challenge = await self.get_signing_message(cancel_event)

            self.logger.debug("Signing challenge")
            with _at_step(AuthStep.SIGN):
                signed = await self._sign(attempt)
            attempt.advance(AuthState.SIGNED)

            self.logger.debug("Sending authentication request", {"client": identity.client_type.value})
            attempt.advance(AuthState.SUBMITTED)
            with _at_step(AuthStep.SUBMIT):
                resp = await self._submit(attempt, signed, cancel_event)

                token = resp.cookies().get(self.session_cookie_name)
                if not token:
                    raise ProtocolError("Failed to obtain session cookie from response")

                body = resp.parsed()
                try:
                    profile = Profile.model_validate(body)
                except ValidationError as e:
                    raise ProtocolError(f"Malformed profile in login response: {e.error_count()} error(s)") from e

            if cancel_event is not None and cancel_event.is_set():
                raise asyncio.CancelledError()

            credential = SessionCredential(token)
            self.carrier.set(credential)
            attempt.advance(AuthState.AUTHENTICATED)
        except BaseException as e:
            if attempt.state is not AuthState.AUTHENTICATED:
                attempt.advance(AuthState.REJECTED)
            self.last_state = attempt.state
            if isinstance(e, Exception):
                self.logger.error("Authentication failed", e, {"client": identity.client_type.value})
            raise

        self.last_state = attempt.state
        result = AuthResult(
            credential=credential,
            profile=profile,
            mode=self._session_mode(resp.status, body),
            identity=identity,
        )
        self.logger.info("Authentication successful", {
            "account": profile.account,
            "client": profile.client,
            "mode": result.mode.value,
        })
        return result

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    async def verify_auth(self, credential: Union[SessionCredential, str]) -> str:
        """Validate ``credential`` server-side and return its wallet address."""
        credential = _as_credential(credential)
        self.logger.debug("Verifying authentication session", {"token": mask_token(credential.token)})
        with _at_step(AuthStep.VERIFY):
            try:
                address = await self.executor.execute(
                    lambda: self.http.get(VERIFY_PATH, credential=credential),
                    _excluding(self.retry_policy, INVALID_SESSION_STATUSES),
                )
            except APIError as e:
                if e.status in INVALID_SESSION_STATUSES:
                    self.logger.warning("Session rejected by server", {"status": e.status})
                    raise SessionInvalidError(f"Session is invalid or expired: {e.message}", status=e.status) from e
                self.logger.error("Session verification failed", e)
                raise

            if isinstance(address, dict):
                address = address.get("address") or address.get("account")
            if not isinstance(address, str) or not address.strip():
                raise ProtocolError("Server returned an empty or malformed address")

        self.logger.info("Session verified", {"address": address})
        return address.strip()

    async def logout(self, credential: Union[SessionCredential, str]) -> None:
        """
        Revoke ``credential`` server-side.

        The local carrier entry is cleared whether or not the server call
        succeeds; a server failure is still raised.
        """
        credential = _as_credential(credential)
        self.logger.debug("Logging out session", {"token": mask_token(credential.token)})
        try:
            with _at_step(AuthStep.REVOKE):
                try:
                    await self.executor.execute(
                        lambda: self.http.post(LOGOUT_PATH, {}, credential=credential),
                        _excluding(self.retry_policy, INVALID_SESSION_STATUSES),
                    )
                except APIError as e:
                    if e.status in INVALID_SESSION_STATUSES:
                        raise SessionInvalidError(f"Session is invalid or expired: {e.message}", status=e.status) from e
                    raise
        except Exception as e:
            self.logger.warning(
                "Logout failed server-side; local session cleared anyway",
                {"error": str(e), "status": getattr(e, "status", None)},
            )
            raise
        finally:
            self.carrier.clear_if(credential)

        self.logger.info("Logout successful")


def _as_credential(credential: Union[SessionCredential, str]) -> SessionCredential:
    if isinstance(credential, SessionCredential):
        return credential
    return SessionCredential(str(credential))


AuthenticationSession = Authenticator

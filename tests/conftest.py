"""
Shared fixtures: an in-process fake exchange (FastAPI over httpx.ASGITransport).
"""

import secrets
from collections import Counter
from typing import Dict, List, Optional

import httpx
import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from limitless_auth import (
    Authenticator,
    HttpClient,
    HttpxTransport,
    RetryExecutor,
    SessionCarrier,
    WalletSigner,
)


BASE_URL = "http://testserver"


class FakeExchange:
    """Minimal login server that really checks wallet signatures."""

    def __init__(self):
        self.sessions: Dict[str, str] = {}
        self.known_accounts = set()
        self.issued_challenges: List[str] = []
        self.calls = Counter()
        # Scripted statuses returned before normal handling, per path.
        self.fail_with: Dict[str, List[int]] = {}
        self.reject_logins = False
        self.omit_cookie = False
        self.empty_challenge = False
        self.logout_status: Optional[int] = None
        self.app = self._build_app()

    def _scripted_failure(self, path: str) -> Optional[Response]:
        queue = self.fail_with.get(path)
        if queue:
            status = queue.pop(0)
            return JSONResponse({"message": f"scripted {status}"}, status_code=status)
        return None

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.get("/auth/signing-message")
        async def signing_message():
            self.calls["challenge"] += 1
            failure = self._scripted_failure("/auth/signing-message")
            if failure is not None:
                return failure
            if self.empty_challenge:
                return PlainTextResponse("")
            message = f"Welcome to Limitless.exchange! Please sign this message to verify your identity.\n\nNonce: 0x{secrets.token_hex(16)}"
            self.issued_challenges.append(message)
            return PlainTextResponse(message)

        @app.post("/auth/login")
        async def login(request: Request):
            self.calls["login"] += 1
            failure = self._scripted_failure("/auth/login")
            if failure is not None:
                return failure

            account = request.headers.get("x-account", "")
            hex_message = request.headers.get("x-signing-message", "")
            signature = request.headers.get("x-signature", "")
            message = bytes.fromhex(hex_message[2:]).decode("utf-8") if hex_message.startswith("0x") else ""

            if self.reject_logins or message not in self.issued_challenges:
                return JSONResponse({"message": "Invalid signature"}, status_code=401)
            recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
            if recovered.lower() != account.lower():
                return JSONResponse({"message": "Invalid signature"}, status_code=401)
            # challenges are single-use
            self.issued_challenges.remove(message)

            body = await request.json()
            is_new = account.lower() not in self.known_accounts
            self.known_accounts.add(account.lower())

            profile = {
                "account": account,
                "displayName": account,
                "client": body.get("client"),
                "userId": len(self.known_accounts),
                "rank": {"feeRateBps": 300},
            }
            if body.get("smartWallet"):
                profile["smartWallet"] = body["smartWallet"]

            response = JSONResponse(profile, status_code=201 if is_new else 200)
            if not self.omit_cookie:
                token = secrets.token_urlsafe(24)
                self.sessions[token] = account
                response.set_cookie("limitless_session", token, httponly=True)
            return response

        @app.get("/auth/verify-auth")
        async def verify(request: Request):
            self.calls["verify"] += 1
            failure = self._scripted_failure("/auth/verify-auth")
            if failure is not None:
                return failure
            token = request.cookies.get("limitless_session")
            if not token or token not in self.sessions:
                return JSONResponse({"message": "Unauthorized"}, status_code=401)
            return PlainTextResponse(self.sessions[token])

        @app.post("/auth/logout")
        async def logout(request: Request):
            self.calls["logout"] += 1
            token = request.cookies.get("limitless_session")
            self.sessions.pop(token, None)
            if self.logout_status is not None:
                return JSONResponse({"message": "logout failed"}, status_code=self.logout_status)
            return JSONResponse({})

        return app


async def no_sleep(delay: float) -> None:
    return None


@pytest.fixture
def exchange() -> FakeExchange:
    return FakeExchange()


@pytest.fixture
def http_client(exchange) -> HttpClient:
    transport = HttpxTransport(BASE_URL, transport=httpx.ASGITransport(app=exchange.app))
    return HttpClient(transport, carrier=SessionCarrier())


@pytest.fixture
def signer() -> WalletSigner:
    return WalletSigner.create()


@pytest.fixture
def authenticator(http_client, signer) -> Authenticator:
    return Authenticator(http_client, signer, executor=RetryExecutor(sleep=no_sleep))

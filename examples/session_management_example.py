#!/usr/bin/env python3
"""
Session Management Example

Reuses a stored session token when it is still valid and transparently
re-authenticates when a request comes back 401/403.

Usage:
    PRIVATE_KEY=0x... python examples/session_management_example.py
"""

import asyncio
import os
import sys

from limitless_auth import (
    AuthenticatedClient,
    Authenticator,
    ClientConfig,
    SessionCredential,
    SessionInvalidError,
    WalletSigner,
    build_http_client,
)


# In-memory stand-in for a real session store
session_store = {"token": os.getenv("SESSION_TOKEN")}


async def main():
    private_key = os.getenv("PRIVATE_KEY")
    if not private_key:
        print("❌ PRIVATE_KEY environment variable required")
        sys.exit(1)

    config = ClientConfig.from_env()
    signer = WalletSigner(private_key=private_key)

    async with build_http_client(config) as http:
        auth = Authenticator(http, signer)

        print("\n📝 Reusing stored session")
        if session_store["token"]:
            credential = SessionCredential(session_store["token"])
            try:
                address = await auth.verify_auth(credential)
                auth.carrier.set(credential)
                print(f"✅ Stored session still valid for {address}")
            except SessionInvalidError:
                print("⚠️  Stored session expired")
                session_store["token"] = None

        if not session_store["token"]:
            result = await auth.authenticate()
            session_store["token"] = result.session_cookie
            print(f"✅ New session for {result.profile.account}")

        print("\n📝 Calling an authenticated endpoint with auto re-login")
        client = AuthenticatedClient(auth, max_retries=1)
        portfolio = await client.with_retry(lambda: http.get("/portfolio/positions"))
        print(f"✅ Positions: {portfolio}")

        if client.last_result is not None:
            session_store["token"] = client.last_result.session_cookie
            print("ℹ️  Session was renewed during the call")


if __name__ == "__main__":
    asyncio.run(main())

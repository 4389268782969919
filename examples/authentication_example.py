#!/usr/bin/env python3
"""
Authentication Example

Logs in with a wallet, verifies the session and logs out.

Usage:
    PRIVATE_KEY=0x... python examples/authentication_example.py
    PRIVATE_KEY=0x... CLIENT=etherspot SMART_WALLET=0x... python examples/authentication_example.py
"""

import asyncio
import os
import sys

from limitless_auth import (
    AuthenticationError,
    Authenticator,
    ClientConfig,
    LimitlessError,
    WalletSigner,
    build_http_client,
)


async def main():
    print("\n" + "=" * 60)
    print("🔐 Limitless Authentication")
    print("=" * 60)

    private_key = os.getenv("PRIVATE_KEY")
    if not private_key:
        print("❌ PRIVATE_KEY environment variable required")
        sys.exit(1)

    config = ClientConfig.from_env(log_level=os.getenv("LIMITLESS_LOG_LEVEL", "info"))
    signer = WalletSigner(private_key=private_key)
    client_type = os.getenv("CLIENT", "eoa")

    print(f"Wallet:  {signer.address}")
    print(f"API:     {config.base_url}")
    print(f"Client:  {client_type}\n")

    async with build_http_client(config) as http:
        auth = Authenticator(http, signer, logger=config.make_logger())

        try:
            result = await auth.authenticate(client=client_type, smart_wallet=os.getenv("SMART_WALLET"))
        except AuthenticationError as e:
            print(f"❌ Login rejected: {e}")
            return
        except LimitlessError as e:
            print(f"❌ Login failed: {e}")
            return

        print("✅ Authenticated")
        print(f"   Account:  {result.profile.account}")
        print(f"   Mode:     {result.mode.value}")
        print(f"   Fee rate: {result.profile.fee_rate_bps} bps")
        print(f"   Session:  {result.credential!r}\n")

        address = await auth.verify_auth(result.credential)
        print(f"✅ Session verified for {address}")

        await auth.logout(result.credential)
        print("✅ Logged out")


if __name__ == "__main__":
    asyncio.run(main())

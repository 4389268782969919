"""
Message Signers
Wallet signing capability used for the login challenge.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

from eth_account import Account
from eth_account.messages import encode_defunct

from ..errors import SigningError
from .models import same_address


@dataclass(frozen=True)
class SignedMessage:
    """Signature over a challenge plus the address that produced it."""
    signature: str
    address: str


def message_to_hex(message: str) -> str:
    """0x-prefixed hex of the UTF-8 message, as sent in ``x-signing-message``."""
    return "0x" + message.encode("utf-8").hex()


def auth_headers(message: str, signed: SignedMessage) -> Dict[str, str]:
    return {
        "x-account": signed.address,
        "x-signing-message": message_to_hex(message),
        "x-signature": signed.signature,
    }


class MessageSigner(ABC):
    """Abstract signer. Implementations raise SigningError when they cannot sign."""

    @property
    @abstractmethod
    def address(self) -> str:
        raise NotImplementedError

    @abstractmethod
    async def sign(self, message: bytes) -> SignedMessage:
        raise NotImplementedError


class WalletSigner(MessageSigner):
    """
    EIP-191 personal-sign signer backed by ``eth_account``.

    The signature is recovered and checked against the wallet address
    before it is returned.
    """

    def __init__(self, private_key: Optional[str] = None, account=None):
        if account is None:
            if not private_key:
                raise ValueError("private_key or account is required")
            try:
                account = Account.from_key(private_key)
            except Exception as e:
                raise ValueError(f"Invalid private key: {type(e).__name__}") from None
        self._account = account

    @classmethod
    def create(cls) -> "WalletSigner":
        """Signer with a freshly generated random key."""
        return cls(account=Account.create())

    @property
    def address(self) -> str:
        return self._account.address

    def _sign_sync(self, message: bytes) -> SignedMessage:
        signable = encode_defunct(primitive=message)
        try:
            signed = self._account.sign_message(signable)
        except Exception as e:
            raise SigningError(f"Wallet failed to sign message: {type(e).__name__}: {e}") from e

        signature = signed.signature.hex()
        if not signature.startswith("0x"):
            signature = "0x" + signature

        recovered = Account.recover_message(signable, signature=signed.signature)
        if not same_address(recovered, self.address):
            raise SigningError("Signature verification failed: address mismatch")

        return SignedMessage(signature=signature, address=self.address)

    async def sign(self, message: bytes) -> SignedMessage:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._sign_sync, message)

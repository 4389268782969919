"""
Auth Data Model
Identity, credential, profile and result types.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..errors import AuthenticationError


_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class ClientType(str, Enum):
    """Signing convention used to produce the login signature."""
    EOA = "eoa"
    BASE = "base"
    ETHERSPOT = "etherspot"

    @classmethod
    def parse(cls, value: Union["ClientType", str]) -> "ClientType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise AuthenticationError(f"Unsupported client type: {value!r}") from None


class SessionMode(str, Enum):
    """How the session was established."""
    NEW = "new"
    RETURNING = "returning"


def is_address(value: Optional[str]) -> bool:
    return bool(value) and bool(_ADDRESS_RE.match(value))


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.lower() == b.lower()


@dataclass(frozen=True)
class Identity:
    """Wallet address plus client type. Immutable for the duration of an attempt."""
    address: str
    client_type: ClientType = ClientType.EOA
    smart_wallet: Optional[str] = None

    def __post_init__(self):
        if not is_address(self.address):
            raise ValueError(f"Invalid wallet address: {self.address!r}")
        if self.smart_wallet is not None and not is_address(self.smart_wallet):
            raise ValueError(f"Invalid smart wallet address: {self.smart_wallet!r}")
        object.__setattr__(self, "client_type", ClientType.parse(self.client_type))

    def validate(self) -> None:
        """Check client-type specific requirements."""
        if self.client_type is ClientType.ETHERSPOT and not self.smart_wallet:
            raise AuthenticationError("Smart wallet address is required for ETHERSPOT client")

    def login_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"client": self.client_type.value}
        if self.smart_wallet:
            payload["smartWallet"] = self.smart_wallet
        return payload


@dataclass(frozen=True)
class SessionCredential:
    """Opaque server-issued session token."""
    token: str

    def __post_init__(self):
        if not self.token or not isinstance(self.token, str):
            raise ValueError("Session token must be a non-empty string")

    def __repr__(self) -> str:
        return f"SessionCredential(token='{self.token[:6]}...')"

    def __str__(self) -> str:
        return self.token


class Profile(BaseModel):
    """User profile returned by the login endpoint. Unknown fields are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    account: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    client: Optional[str] = None
    smart_wallet: Optional[str] = Field(default=None, alias="smartWallet")
    user_id: Optional[Union[int, str]] = Field(default=None, alias="userId")
    rank: Optional[Dict[str, Any]] = None

    @property
    def fee_rate_bps(self) -> Optional[int]:
        if not self.rank:
            return None
        value = self.rank.get("feeRateBps")
        return int(value) if value is not None else None


@dataclass(frozen=True)
class AuthResult:
    credential: SessionCredential
    profile: Profile
    mode: SessionMode
    identity: Identity

    @property
    def session_cookie(self) -> str:
        return self.credential.token

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class PaymentMode(str, Enum):
    PRODUCTION = "production"
    SANDBOX = "sandbox"


class SignType(str, Enum):
    MD5 = "MD5"
    SHA1 = "SHA1"


class ReturnCode(str, Enum):
    SUCCESS = "SUCCESS"
    FAIL = "FAIL"


class TradeType(str, Enum):
    JSAPI = "JSAPI"
    NATIVE = "NATIVE"
    APP = "APP"
    MWEB = "MWEB"


class DefaultProfile(str, Enum):
    """Which ClientConfig-derived fields an operation gets when the caller omits them."""

    FULL = "full"                        # appid, mch_id, sub_mch_id, nonce_str
    MERCHANT_NONCE = "merchant_nonce"    # mch_id, nonce_str
    NONCE_ONLY = "nonce_only"            # nonce_str


def parse_enum(enum_type, value: Optional[str], default):
    """Case-insensitive lookup by value or name; blank input gives ``default``."""
    if not value:
        return default
    raw = value.strip().lower()
    for member in enum_type:
        if raw in (member.value.lower(), member.name.lower()):
            return member
    raise ValueError(f"Unsupported {enum_type.__name__} '{value}'.")


# ---------------------------------------------------------------------------
# Abstract transport interface
# ---------------------------------------------------------------------------

class Transport(ABC):
    """
    Performs a single request/response exchange with the gateway.

    Implementations return the raw response body or raise ``TransportError``.
    """

    @abstractmethod
    async def post(self, url: str, body: str, *, use_cert: bool = False) -> str:
        """POST ``body`` to ``url``; ``use_cert`` selects the client-certificate channel."""

    async def aclose(self) -> None:
        """Release pooled resources, if any."""


__all__ = [
    "PaymentMode",
    "SignType",
    "ReturnCode",
    "TradeType",
    "DefaultProfile",
    "Transport",
    "parse_enum",
]

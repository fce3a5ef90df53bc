"""
Request/response signing for the WeChat Pay v2 API.

The gateway recomputes the same canonical string on its side, so the rules
below are part of the wire protocol:

1. Drop the ``sign`` field.
2. Drop fields whose value is None or an empty string.
3. Sort the remaining names by byte value.
4. Join as ``name=value`` pairs separated by ``&``.
5. Append ``&key=<partner key>``, digest (MD5 or SHA1), upper-case the hex.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
import string
import time
from typing import Any, Mapping, Union

from wxpay.integrations.contracts.interfaces import SignType

NONCE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
NONCE_LENGTH = 32

_DIGESTS = {
    SignType.MD5: hashlib.md5,
    SignType.SHA1: hashlib.sha1,
}


def to_query_string(fields: Mapping[str, Any]) -> str:
    """Return the canonical string for ``fields``."""
    pairs = [
        f"{key}={fields[key]}"
        for key in sorted(fields)
        if key != "sign" and fields[key] is not None and fields[key] != ""
    ]
    return "&".join(pairs)


def digest(text: str, sign_type: Union[SignType, str] = SignType.MD5) -> str:
    """Lower-case hex digest of ``text`` with the selected algorithm."""
    algorithm = _DIGESTS[SignType(sign_type)]
    return algorithm(text.encode("utf-8")).hexdigest()


def sign(canonical: str, key: str, sign_type: Union[SignType, str] = SignType.MD5) -> str:
    return digest(f"{canonical}&key={key}", sign_type).upper()


def get_sign(fields: Mapping[str, Any], key: str, sign_type: Union[SignType, str] = SignType.MD5) -> str:
    return sign(to_query_string(fields), key, sign_type)


def verify_sign(fields: Mapping[str, Any], key: str, sign_type: Union[SignType, str] = SignType.MD5) -> bool:
    """Strict check of ``fields['sign']``; a lower-case remote signature does not verify."""
    provided = fields.get("sign")
    if not isinstance(provided, str):
        return False
    expected = get_sign(fields, key, sign_type)
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


def generate_nonce_str(length: int = NONCE_LENGTH) -> str:
    return "".join(secrets.choice(NONCE_ALPHABET) for _ in range(length))


def generate_timestamp() -> str:
    return str(int(time.time()))


__all__ = [
    "to_query_string",
    "digest",
    "sign",
    "get_sign",
    "verify_sign",
    "generate_nonce_str",
    "generate_timestamp",
]

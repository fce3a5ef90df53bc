"""
Error taxonomy for the WeChat Pay integration.

Every failure an operation can produce is one of the classes below. Callers can
catch ``WechatPayError`` for "anything went wrong" or a specific subclass when
they need its payload (missing fields, raw body, remote error code, ...).

None of these errors poison the client: each call is independent.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class WechatPayError(Exception):
    """Base exception for every error raised by this package."""

    error_code = "WechatPayError"

    def __init__(self, message: str = "", *, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error_code": self.error_code, "message": self.message}


class ConfigurationError(WechatPayError):
    error_code = "ConfigurationError"


class MissingFieldsError(WechatPayError):
    """Raised before any network call when required request fields are absent."""

    error_code = "MissingFieldsError"

    def __init__(self, missing: List[str]) -> None:
        self.missing = list(missing)
        super().__init__("missing params " + ",".join(self.missing))


class TransportError(WechatPayError):
    """Network or HTTP level failure talking to the gateway."""

    error_code = "TransportError"

    def __init__(self, message: str, *, url: str = "", status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class XMLParseError(WechatPayError):
    """
    The response body is not XML.

    ``raw_body`` is kept so the caller can fall back to another parser; the
    bill download report is plain text and always lands here.
    """

    error_code = "XMLParseError"

    def __init__(self, message: str, *, raw_body: str) -> None:
        super().__init__(message)
        self.raw_body = raw_body


class ProtocolError(WechatPayError):
    """The gateway reported ``return_code=FAIL``."""

    error_code = "ProtocolError"

    def __init__(self, return_msg: str, *, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(return_msg, data=data)
        self.return_msg = return_msg


class BusinessError(WechatPayError):
    """The gateway accepted the call but reported ``result_code=FAIL``."""

    error_code = "BusinessError"

    def __init__(
        self,
        err_code: str,
        err_code_des: str = "",
        *,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(err_code, data=data)
        self.err_code = err_code
        self.err_code_des = err_code_des

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["err_code_des"] = self.err_code_des
        return payload


class IdentityMismatchError(WechatPayError):
    """A response identity field does not match the client's own configuration."""

    field_name = ""

    def __init__(
        self,
        expected: Optional[str],
        actual: Optional[str],
        *,
        field: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.field = field or self.field_name
        super().__init__(f"{self.field} mismatch: expected {expected!r}, got {actual!r}", data=data)
        self.expected = expected
        self.actual = actual


class InvalidAppId(IdentityMismatchError):
    error_code = "InvalidAppId"
    field_name = "appid"


class InvalidMchId(IdentityMismatchError):
    error_code = "InvalidMchId"
    field_name = "mch_id"


class InvalidSubMchId(IdentityMismatchError):
    error_code = "InvalidSubMchId"
    field_name = "sub_mch_id"


class InvalidSignature(WechatPayError):
    error_code = "InvalidSignature"

    def __init__(self, expected: str, actual: str, *, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("response signature does not match", data=data)
        self.expected = expected
        self.actual = actual


__all__ = [
    "WechatPayError",
    "ConfigurationError",
    "MissingFieldsError",
    "TransportError",
    "XMLParseError",
    "ProtocolError",
    "BusinessError",
    "IdentityMismatchError",
    "InvalidAppId",
    "InvalidMchId",
    "InvalidSubMchId",
    "InvalidSignature",
]

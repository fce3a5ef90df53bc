from __future__ import annotations

import logging
from typing import Any, Dict, Union
from xml.parsers.expat import ExpatError

import xmltodict

from wxpay.config import ClientConfig
from wxpay.integrations.contracts.interfaces import ReturnCode
from wxpay.integrations.policy.errors import (
    BusinessError,
    InvalidAppId,
    InvalidMchId,
    InvalidSignature,
    InvalidSubMchId,
    ProtocolError,
    XMLParseError,
)
from wxpay.integrations.policy.signing import get_sign, verify_sign

logger = logging.getLogger(__name__)


def parse_xml(raw_body: Union[str, bytes]) -> Dict[str, Any]:
    """Parse a single-root XML document into a flat field map."""
    text = raw_body.decode("utf-8", errors="replace") if isinstance(raw_body, bytes) else raw_body
    try:
        document = xmltodict.parse(text, strip_whitespace=True)
    except ExpatError as exc:
        raise XMLParseError(f"Response is not valid XML: {exc}", raw_body=text) from exc

    root = next(iter(document.values()), None) if document else None
    if not isinstance(root, dict):
        return {}
    return {key: _scalar(value) for key, value in root.items() if not key.startswith("@")}


def _scalar(value: Any) -> Any:
    # Elements carrying attributes come back as {"@attr": ..., "#text": ...}.
    if isinstance(value, dict) and "#text" in value:
        return value["#text"]
    if isinstance(value, str):
        return value.strip()
    return value


class ResponseValidator:
    """
    Checks a raw gateway response against the client's own configuration.

    Checks run in a fixed order and stop at the first failure; a check whose
    response field is absent is skipped.
    """

    def __init__(self, config: ClientConfig) -> None:
        self.config = config

    def validate(self, raw_body: Union[str, bytes]) -> Dict[str, Any]:
        data = parse_xml(raw_body)
        self.check(data)
        return data

    def validate_notification(self, raw_body: Union[str, bytes]) -> Dict[str, Any]:
        """
        Like ``validate`` but a ``result_code=FAIL`` body is returned, not raised.

        A payment notification for a failed payment is still a genuine message
        the merchant must acknowledge; it only has to come from the gateway.
        """
        data = parse_xml(raw_body)
        self.check(data, business=False)
        if not data.get("sign"):
            raise InvalidSignature(get_sign(data, self.config.partner_key, self.config.sign_type), "", data=data)
        return data

    def check(self, data: Dict[str, Any], business: bool = True) -> None:
        if data.get("return_code") == ReturnCode.FAIL.value:
            raise ProtocolError(data.get("return_msg") or "", data=data)

        if business and data.get("result_code") == ReturnCode.FAIL.value:
            raise BusinessError(data.get("err_code") or "", data.get("err_code_des") or "", data=data)

        if data.get("appid") and data["appid"] != self.config.app_id:
            raise InvalidAppId(self.config.app_id, data["appid"], data=data)

        # The remote API spells the merchant id both ways depending on the endpoint.
        if data.get("mch_id") and data["mch_id"] != self.config.mch_id:
            raise InvalidMchId(self.config.mch_id, data["mch_id"], field="mch_id", data=data)
        if data.get("mchid") and data["mchid"] != self.config.mch_id:
            raise InvalidMchId(self.config.mch_id, data["mchid"], field="mchid", data=data)

        if self.config.sub_mch_id and self.config.sub_mch_id != data.get("sub_mch_id"):
            raise InvalidSubMchId(self.config.sub_mch_id, data.get("sub_mch_id"), data=data)

        if data.get("sign") and not verify_sign(data, self.config.partner_key, self.config.sign_type):
            logger.warning("Signature mismatch on gateway response (return_code=%s)", data.get("return_code"))
            raise InvalidSignature(
                get_sign(data, self.config.partner_key, self.config.sign_type),
                data["sign"],
                data=data,
            )


__all__ = ["ResponseValidator", "parse_xml"]

"""
Real WeChat Pay client.

Every public coroutine maps to one gateway operation from
``wxpay.integrations.contracts.operations``: build + sign the request, POST it,
validate the signed response. Errors are raised to the caller as one of the
classes in ``wxpay.integrations.policy.errors``; nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from wxpay.config import ClientConfig
from wxpay.integrations.contracts import operations
from wxpay.integrations.contracts.interfaces import SignType, TradeType, Transport
from wxpay.integrations.contracts.operations import OperationSpec
from wxpay.integrations.contracts.payments import BillReport, parse_bill
from wxpay.integrations.policy.errors import MissingFieldsError, ProtocolError, XMLParseError
from wxpay.integrations.policy.request_builder import RequestBuilder
from wxpay.integrations.policy.response_wrappers import ResponseValidator
from wxpay.integrations.policy.signing import (
    digest,
    generate_nonce_str,
    generate_timestamp,
    get_sign,
    to_query_string,
)

from .transport import HttpxTransport

logger = logging.getLogger(__name__)

Fields = Mapping[str, Any]


class WechatPaymentsClient:
    def __init__(self, config: ClientConfig, transport: Optional[Transport] = None) -> None:
        self.config = config
        self.transport = transport or HttpxTransport(config)
        self.builder = RequestBuilder(config)
        self.validator = ResponseValidator(config)

    async def call(self, spec: OperationSpec, params: Fields) -> Dict[str, Any]:
        """Run one catalog operation end to end and return the validated response fields."""
        body = self.builder.build(spec, params)
        url = spec.url_for(self.config.mode)
        logger.info("WeChat Pay %s -> %s", spec.name, url)
        raw = await self.transport.post(url, body, use_cert=spec.requires_cert)
        return self.validator.validate(raw)

    def validate(self, raw_body: Union[str, bytes]) -> Dict[str, Any]:
        return self.validator.validate(raw_body)

    def validate_notification(self, raw_body: Union[str, bytes]) -> Dict[str, Any]:
        """Verify an asynchronous payment notification; failed payments are returned, not raised."""
        return self.validator.validate_notification(raw_body)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def unified_order(self, params: Fields) -> Dict[str, Any]:
        return await self.call(operations.UNIFIED_ORDER, params)

    async def order_query(self, params: Fields) -> Dict[str, Any]:
        return await self.call(operations.ORDER_QUERY, params)

    async def close_order(self, params: Fields) -> Dict[str, Any]:
        return await self.call(operations.CLOSE_ORDER, params)

    async def get_brand_wcpay_request_params(self, order: Fields) -> Dict[str, Any]:
        """
        Create the order, then sign the parameters for the in-app payment call
        (``WeixinJSBridge.invoke('getBrandWCPayRequest', ...)``).
        """
        data = await self.unified_order(order)
        prepay_id = data.get("prepay_id")
        if not prepay_id:
            raise ProtocolError("unified order response carries no prepay_id", data=data)

        params: Dict[str, Any] = {
            "appId": self.config.app_id,
            "timeStamp": generate_timestamp(),
            "nonceStr": generate_nonce_str(),
            "signType": SignType.MD5.value,
            "package": f"prepay_id={prepay_id}",
        }
        params["paySign"] = get_sign(params, self.config.partner_key, SignType.MD5)

        trade_type = order.get("trade_type")
        if trade_type == TradeType.NATIVE.value:
            params["code_url"] = data.get("code_url")
        elif trade_type == TradeType.MWEB.value:
            params["mweb_url"] = data.get("mweb_url")

        params["timestamp"] = params["timeStamp"]
        return params

    def get_edit_address_params(self, url: str, access_token: str) -> Dict[str, Any]:
        """Parameters for ``WeixinJSBridge.invoke('editAddress', ...)``; ``url`` must carry code and state."""
        missing = [name for name, value in (("url", url), ("accessToken", access_token)) if not value]
        if missing:
            raise MissingFieldsError(missing)

        params: Dict[str, Any] = {
            "appId": self.config.app_id,
            "scope": "jsapi_address",
            "signType": SignType.SHA1.value,
            "timeStamp": generate_timestamp(),
            "nonceStr": generate_nonce_str(),
        }
        sign_params = {
            "appid": params["appId"],
            "url": url,
            "timestamp": params["timeStamp"],
            "noncestr": params["nonceStr"],
            "accesstoken": access_token,
        }
        params["addrSign"] = digest(to_query_string(sign_params), SignType.SHA1)
        return params

    # ------------------------------------------------------------------
    # Refunds
    # ------------------------------------------------------------------

    async def refund(self, params: Fields) -> Dict[str, Any]:
        return await self.call(operations.REFUND, params)

    async def refund_query(self, params: Fields) -> Dict[str, Any]:
        return await self.call(operations.REFUND_QUERY, params)

    # ------------------------------------------------------------------
    # Reports and tools
    # ------------------------------------------------------------------

    async def download_bill(self, params: Fields) -> BillReport:
        try:
            data = await self.call(operations.DOWNLOAD_BILL, params)
        except XMLParseError as exc:
            report = parse_bill(exc.raw_body)
            logger.info("Parsed bill report with %d records", len(report.records))
            return report
        # A well-formed XML success body carries no bill rows.
        logger.warning("Bill download returned XML instead of a report: %s", data.get("return_msg"))
        return BillReport()

    async def short_url(self, params: Fields) -> Dict[str, Any]:
        return await self.call(operations.SHORT_URL, params)

    # ------------------------------------------------------------------
    # Red packets and transfers
    # ------------------------------------------------------------------

    async def send_red_packet(self, params: Fields) -> Dict[str, Any]:
        return await self.call(operations.REDPACK_SEND, params)

    async def red_packet_query(self, params: Fields) -> Dict[str, Any]:
        return await self.call(operations.REDPACK_QUERY, params)

    async def transfers(self, params: Fields) -> Dict[str, Any]:
        return await self.call(operations.TRANSFERS, params)

    async def transfers_query(self, params: Fields) -> Dict[str, Any]:
        return await self.call(operations.TRANSFERS_QUERY, params)

    async def aclose(self) -> None:
        await self.transport.aclose()


__all__ = ["WechatPaymentsClient"]

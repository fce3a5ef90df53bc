"""
Mock WeChat Pay gateway.

⚠️  This is a mock implementation for development and testing.
    It plugs into ``WechatPaymentsClient`` as its ``Transport`` and does NOT make
    any network calls. Requests are parsed and signature-checked the way the
    real gateway does it, and every reply is a signed XML body, so the whole
    build -> sign -> validate path runs unchanged.

Behavior guidelines:
- unified_order stores the order in memory and returns a prepay_id
- order_query / close_order / refund work against the stored orders
- download_bill returns a plain-text bill report, not XML
- ``respond_with(...)`` overrides the reply of one endpoint to simulate failures
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

from wxpay.integrations.contracts.interfaces import ReturnCode, SignType, TradeType, Transport
from wxpay.integrations.policy.errors import TransportError, XMLParseError
from wxpay.integrations.policy.request_builder import build_xml
from wxpay.integrations.policy.response_wrappers import parse_xml
from wxpay.integrations.policy.signing import generate_nonce_str, get_sign, verify_sign

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

SAMPLE_BILL = (
    "交易时间,公众账号ID,商户号,子商户号,设备号,微信订单号,商户订单号,用户标识,交易类型,交易状态,总金额\r\n"
    "`2024-03-01 10:00:00,`{app_id},`{mch_id},`0,`,`4200000001,`order-1,`oUser1,`NATIVE,`SUCCESS,`1.00\r\n"
    "`2024-03-01 11:30:00,`{app_id},`{mch_id},`0,`,`4200000002,`order-2,`oUser2,`JSAPI,`SUCCESS,`2.50\r\n"
    "总交易单数,总交易额,总退款金额,总企业红包退款金额,手续费总金额\r\n"
    "`2,`3.50,`0.00,`0.00,`0.02\r\n"
)


CERT_ENDPOINTS = {"refund", "sendredpack", "gethbinfo", "transfers", "gettransferinfo"}


@dataclass
class MockRequest:
    url: str
    fields: Dict[str, Any]
    use_cert: bool
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def endpoint(self) -> str:
        return self.url.rsplit("/", 1)[-1]


# ---------------------------------------------------------------------------
# Mock transport
# ---------------------------------------------------------------------------

class MockGatewayTransport(Transport):
    """
    In-memory stand-in for the WeChat Pay gateway.

    Parameters
    ----------
    app_id, mch_id, partner_key :
        Identity the mock gateway answers with and the key it signs with.
    sign_type :
        Digest used for request verification and reply signing.
    bill_text :
        Body returned by the bill download endpoint; defaults to ``SAMPLE_BILL``.
    """

    def __init__(
        self,
        app_id: str,
        mch_id: str,
        partner_key: str,
        sign_type: SignType = SignType.MD5,
        bill_text: Optional[str] = None,
    ):
        self.app_id = app_id
        self.mch_id = mch_id
        self.partner_key = partner_key
        self.sign_type = sign_type
        self.bill_text = bill_text if bill_text is not None else SAMPLE_BILL.format(app_id=app_id, mch_id=mch_id)

        # In-memory stores (reset on restart)
        self.requests: List[MockRequest] = []
        self._orders: Dict[str, Dict[str, Any]] = {}
        self._refunds: Dict[str, Dict[str, Any]] = {}
        self._overrides: Dict[str, Dict[str, Any]] = {}

        logger.info("[WXPAY MOCK] Gateway initialised for mch_id=%s", mch_id)

    # ------------------------------------------------------------------
    # Scenario control
    # ------------------------------------------------------------------

    def respond_with(
        self,
        endpoint: str,
        fields: Optional[Dict[str, Any]] = None,
        *,
        raw: Optional[str] = None,
        sign: bool = True,
        error: Optional[Exception] = None,
    ) -> None:
        """
        Override replies for ``endpoint`` (last URL segment, e.g. ``"unifiedorder"``).

        ``fields`` are merged over the normal reply, ``raw`` replaces the body
        entirely, ``error`` is raised instead of replying.
        """
        self._overrides[endpoint] = {"fields": fields or {}, "raw": raw, "sign": sign, "error": error}

    def last_request(self) -> MockRequest:
        return self.requests[-1]

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def post(self, url: str, body: str, *, use_cert: bool = False) -> str:
        try:
            fields = parse_xml(body)
        except XMLParseError:
            return self._render(self._fail("XML_FORMAT_ERROR"), sign=False)

        request = MockRequest(url=url, fields=fields, use_cert=use_cert)
        self.requests.append(request)
        logger.info("[WXPAY MOCK] %s (cert=%s)", request.endpoint, use_cert)

        override = self._overrides.get(request.endpoint, {})
        if override.get("error") is not None:
            raise override["error"]
        if override.get("raw") is not None:
            return override["raw"]

        if not verify_sign(self._signed_fields(fields), self.partner_key, self.sign_type):
            return self._render(self._fail("签名错误"), sign=False)

        if request.endpoint in CERT_ENDPOINTS and not use_cert:
            return self._render(self._fail("证书错误"), sign=False)

        handler = getattr(self, f"_handle_{request.endpoint}", None)
        if handler is None:
            raise TransportError(f"Mock gateway has no endpoint {request.endpoint}", url=url, status_code=404)

        if request.endpoint == "downloadbill" and not override:
            return self.bill_text

        reply = handler(fields)
        reply.update(override.get("fields", {}))
        return self._render(reply, sign=override.get("sign", True))

    # ------------------------------------------------------------------
    # Reply helpers
    # ------------------------------------------------------------------

    def _render(self, reply: Dict[str, Any], sign: bool = True) -> str:
        reply = {k: v for k, v in reply.items() if v is not None}
        if sign:
            reply["nonce_str"] = reply.get("nonce_str") or generate_nonce_str()
            reply["sign"] = get_sign(reply, self.partner_key, self.sign_type)
        return build_xml(reply)

    def _signed_fields(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        # long_url is signed before it is percent-encoded
        if fields.get("long_url"):
            return {**fields, "long_url": unquote(fields["long_url"])}
        return fields

    def _fail(self, message: str) -> Dict[str, Any]:
        return {"return_code": ReturnCode.FAIL.value, "return_msg": message}

    def _success(self, request: Dict[str, Any], **payload: Any) -> Dict[str, Any]:
        reply = {
            "return_code": ReturnCode.SUCCESS.value,
            "return_msg": "OK",
            "result_code": ReturnCode.SUCCESS.value,
            "appid": self.app_id,
            "mch_id": self.mch_id,
            "sub_mch_id": request.get("sub_mch_id"),
        }
        reply.update(payload)
        return reply

    def _business_fail(self, request: Dict[str, Any], err_code: str, err_code_des: str) -> Dict[str, Any]:
        reply = self._success(request)
        reply.update(result_code=ReturnCode.FAIL.value, err_code=err_code, err_code_des=err_code_des)
        return reply

    def _find_order(self, request: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if request.get("out_trade_no") in self._orders:
            return self._orders[request["out_trade_no"]]
        for order in self._orders.values():
            if request.get("transaction_id") and order["transaction_id"] == request["transaction_id"]:
                return order
        return None

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def _handle_unifiedorder(self, request: Dict[str, Any]) -> Dict[str, Any]:
        prepay_id = f"wx{uuid.uuid4().hex[:28]}"
        self._orders[request["out_trade_no"]] = {
            "out_trade_no": request["out_trade_no"],
            "transaction_id": f"42{uuid.uuid4().int % 10**26:026d}",
            "total_fee": request.get("total_fee"),
            "trade_type": request.get("trade_type"),
            "trade_state": "NOTPAY",
        }
        trade_type = request.get("trade_type")
        return self._success(
            request,
            prepay_id=prepay_id,
            trade_type=trade_type,
            code_url=f"weixin://wxpay/bizpayurl?pr={prepay_id[-7:]}" if trade_type == TradeType.NATIVE.value else None,
            mweb_url=f"https://wx.tenpay.com/cgi-bin/mmpayweb-bin/checkmweb?prepay_id={prepay_id}"
            if trade_type == TradeType.MWEB.value else None,
        )

    def _handle_orderquery(self, request: Dict[str, Any]) -> Dict[str, Any]:
        order = self._find_order(request)
        if order is None:
            return self._business_fail(request, "ORDERNOTEXIST", "此交易订单号不存在")
        return self._success(request, **order)

    def _handle_closeorder(self, request: Dict[str, Any]) -> Dict[str, Any]:
        order = self._find_order(request)
        if order is None:
            return self._business_fail(request, "ORDERNOTEXIST", "此交易订单号不存在")
        order["trade_state"] = "CLOSED"
        return self._success(request)

    def _handle_refund(self, request: Dict[str, Any]) -> Dict[str, Any]:
        order = self._find_order(request)
        if order is None:
            return self._business_fail(request, "ORDERNOTEXIST", "此交易订单号不存在")
        refund = {
            "out_refund_no": request["out_refund_no"],
            "refund_id": f"50{uuid.uuid4().int % 10**26:026d}",
            "refund_fee": request.get("refund_fee"),
            "total_fee": request.get("total_fee"),
            "out_trade_no": order["out_trade_no"],
            "transaction_id": order["transaction_id"],
        }
        self._refunds[refund["out_refund_no"]] = refund
        return self._success(request, **refund)

    def _handle_refundquery(self, request: Dict[str, Any]) -> Dict[str, Any]:
        matches = [
            refund for refund in self._refunds.values()
            if any(request.get(key) and refund[key] == request[key]
                   for key in ("out_refund_no", "refund_id", "out_trade_no", "transaction_id"))
        ]
        if not matches:
            return self._business_fail(request, "REFUNDNOTEXIST", "退款订单查询失败")
        payload: Dict[str, Any] = {"refund_count": str(len(matches))}
        for index, refund in enumerate(matches):
            payload[f"out_refund_no_{index}"] = refund["out_refund_no"]
            payload[f"refund_id_{index}"] = refund["refund_id"]
            payload[f"refund_fee_{index}"] = refund["refund_fee"]
            payload[f"refund_status_{index}"] = "SUCCESS"
        return self._success(request, **payload)

    def _handle_downloadbill(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return self._success(request)

    def _handle_shorturl(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return self._success(request, short_url=f"weixin://wxpay/s/{uuid.uuid4().hex[:8]}")

    def _handle_sendredpack(self, request: Dict[str, Any]) -> Dict[str, Any]:
        reply = self._success(
            request,
            wxappid=request.get("wxappid"),
            mch_billno=request.get("mch_billno"),
            re_openid=request.get("re_openid"),
            total_amount=request.get("total_amount"),
            send_listid=uuid.uuid4().hex[:20],
        )
        reply.pop("appid")
        return reply

    def _handle_gethbinfo(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return self._success(request, mch_billno=request.get("mch_billno"), status="RECEIVED", bill_type="MCHT")

    def _handle_transfers(self, request: Dict[str, Any]) -> Dict[str, Any]:
        reply = {
            "return_code": ReturnCode.SUCCESS.value,
            "return_msg": "OK",
            "result_code": ReturnCode.SUCCESS.value,
            "mch_appid": self.app_id,
            "mchid": self.mch_id,
            "partner_trade_no": request.get("partner_trade_no"),
            "payment_no": f"10{uuid.uuid4().int % 10**26:026d}",
            "payment_time": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
        }
        return reply

    def _handle_gettransferinfo(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return self._success(request, partner_trade_no=request.get("partner_trade_no"), status="SUCCESS")

"""
Operation catalog.

One ``OperationSpec`` per gateway API. A spec says where the request goes (per
mode), which fields must be present, which defaults the request builder fills
in from ``ClientConfig`` and whether the call needs the client certificate.

Required entries are either a single field name or ``a|b`` alternatives, of
which at least one must be present.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from operator import attrgetter
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from wxpay.integrations.contracts.interfaces import DefaultProfile, PaymentMode

BASE_URL = "https://api.mch.weixin.qq.com/"
SANDBOX_PREFIX = "sandbox/"

DefaultResolver = Callable[[Any], Any]

PROFILE_FIELDS: Dict[DefaultProfile, Tuple[str, ...]] = {
    DefaultProfile.FULL: ("appid", "mch_id", "sub_mch_id", "nonce_str"),
    DefaultProfile.MERCHANT_NONCE: ("mch_id", "nonce_str"),
    DefaultProfile.NONCE_ONLY: ("nonce_str",),
}


def constant(value: Any) -> DefaultResolver:
    return lambda _config: value


@dataclass(frozen=True)
class OperationSpec:
    name: str
    endpoint: str
    required: Tuple[str, ...] = ()
    discriminant: Optional[str] = None
    conditional: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    default_profile: DefaultProfile = DefaultProfile.FULL
    extra_defaults: Tuple[Tuple[str, DefaultResolver], ...] = ()
    requires_cert: bool = False
    sandbox_endpoint: Optional[str] = None

    def url_for(self, mode: PaymentMode) -> str:
        if mode == PaymentMode.SANDBOX:
            return BASE_URL + (self.sandbox_endpoint or SANDBOX_PREFIX + self.endpoint)
        return BASE_URL + self.endpoint

    def required_for(self, fields: Mapping[str, Any]) -> Tuple[str, ...]:
        """Base required entries plus the ones selected by the discriminant's value."""
        if not self.discriminant:
            return self.required
        value = fields.get(self.discriminant)
        return self.required + tuple(self.conditional.get(str(value), ()))


UNIFIED_ORDER = OperationSpec(
    name="unified_order",
    endpoint="pay/unifiedorder",
    required=("body", "out_trade_no", "total_fee", "spbill_create_ip", "trade_type"),
    discriminant="trade_type",
    conditional={
        "JSAPI": ("openid|sub_openid",),
        "NATIVE": ("product_id",),
    },
    extra_defaults=(("notify_url", attrgetter("notify_url")),),
)

ORDER_QUERY = OperationSpec(
    name="order_query",
    endpoint="pay/orderquery",
    required=("transaction_id|out_trade_no",),
)

REFUND = OperationSpec(
    name="refund",
    endpoint="secapi/pay/refund",
    sandbox_endpoint="secapi/sandbox/pay/refund",
    required=("transaction_id|out_trade_no", "out_refund_no", "total_fee", "refund_fee"),
    extra_defaults=(("op_user_id", attrgetter("mch_id")),),
    requires_cert=True,
)

REFUND_QUERY = OperationSpec(
    name="refund_query",
    endpoint="pay/refundquery",
    required=("transaction_id|out_trade_no|out_refund_no|refund_id",),
)

DOWNLOAD_BILL = OperationSpec(
    name="download_bill",
    endpoint="pay/downloadbill",
    required=("bill_date", "bill_type"),
)

SHORT_URL = OperationSpec(
    name="short_url",
    endpoint="tools/shorturl",
    required=("long_url",),
)

CLOSE_ORDER = OperationSpec(
    name="close_order",
    endpoint="pay/closeorder",
    required=("out_trade_no",),
)

REDPACK_SEND = OperationSpec(
    name="send_red_packet",
    endpoint="mmpaymkttransfers/sendredpack",
    required=(
        "mch_billno",
        "send_name",
        "re_openid",
        "total_amount",
        "total_num",
        "wishing",
        "client_ip",
        "act_name",
        "remark",
    ),
    default_profile=DefaultProfile.MERCHANT_NONCE,
    extra_defaults=(("wxappid", attrgetter("app_id")),),
    requires_cert=True,
)

REDPACK_QUERY = OperationSpec(
    name="red_packet_query",
    endpoint="mmpaymkttransfers/gethbinfo",
    required=("mch_billno",),
    extra_defaults=(("bill_type", constant("MCHT")),),
    requires_cert=True,
)

TRANSFERS = OperationSpec(
    name="transfers",
    endpoint="mmpaymkttransfers/promotion/transfers",
    required=("mch_appid", "partner_trade_no", "openid", "check_name", "amount", "desc", "spbill_create_ip"),
    default_profile=DefaultProfile.NONCE_ONLY,
    extra_defaults=(
        ("mchid", attrgetter("mch_id")),
        ("mch_appid", attrgetter("app_id")),
    ),
    requires_cert=True,
)

TRANSFERS_QUERY = OperationSpec(
    name="transfers_query",
    endpoint="mmpaymkttransfers/gettransferinfo",
    required=("partner_trade_no",),
    requires_cert=True,
)

OPERATIONS: Dict[str, OperationSpec] = {
    spec.name: spec
    for spec in (
        UNIFIED_ORDER,
        ORDER_QUERY,
        REFUND,
        REFUND_QUERY,
        DOWNLOAD_BILL,
        SHORT_URL,
        CLOSE_ORDER,
        REDPACK_SEND,
        REDPACK_QUERY,
        TRANSFERS,
        TRANSFERS_QUERY,
    )
}


__all__ = [
    "BASE_URL",
    "PROFILE_FIELDS",
    "OperationSpec",
    "OPERATIONS",
    "UNIFIED_ORDER",
    "ORDER_QUERY",
    "REFUND",
    "REFUND_QUERY",
    "DOWNLOAD_BILL",
    "SHORT_URL",
    "CLOSE_ORDER",
    "REDPACK_SEND",
    "REDPACK_QUERY",
    "TRANSFERS",
    "TRANSFERS_QUERY",
]

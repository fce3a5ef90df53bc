"""
WeChat Pay (merchant API v2) client.

    config = ClientConfig(
        app_id="wx...",
        partner_key="...",
        mch_id="...",
        notify_url="https://shop.example.com/wxpay/notify",
        cert_path="apiclient_cert.pem",
        key_path="apiclient_key.pem",
    )
    client = WechatPaymentsClient(config)
    data = await client.unified_order({...})
"""

from .config import ClientConfig
from .integrations import (
    BillReport,
    BusinessError,
    ConfigurationError,
    InvalidAppId,
    InvalidMchId,
    InvalidSignature,
    InvalidSubMchId,
    MissingFieldsError,
    PaymentMode,
    ProtocolError,
    SignType,
    TradeType,
    TransportError,
    WechatPayError,
    XMLParseError,
)
from .integrations.clients.mocks import MockGatewayTransport
from .integrations.clients.real_http import HttpxTransport, WechatPaymentsClient

__version__ = "0.1.0"

__all__ = [
    "ClientConfig", "WechatPaymentsClient", "HttpxTransport", "MockGatewayTransport",
    "BillReport", "PaymentMode", "SignType", "TradeType",
    "WechatPayError", "ConfigurationError", "MissingFieldsError", "TransportError",
    "XMLParseError", "ProtocolError", "BusinessError",
    "InvalidAppId", "InvalidMchId", "InvalidSubMchId", "InvalidSignature",
]

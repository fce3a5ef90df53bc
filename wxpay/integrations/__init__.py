"""
Integrations layer.

This package contains all code used to communicate with the WeChat Pay gateway.

Key rule:
- Callers MUST NOT build or parse gateway payloads by hand.
- Use ``WechatPaymentsClient`` (clients/real_http) with either the real
  ``HttpxTransport`` or the ``MockGatewayTransport`` (clients/mocks).
"""

from .contracts.interfaces import (
    DefaultProfile,
    PaymentMode,
    ReturnCode,
    SignType,
    TradeType,
    Transport,
)
from .contracts.operations import OPERATIONS, OperationSpec
from .contracts.payments import BillReport, parse_bill
from .policy.errors import (
    BusinessError,
    ConfigurationError,
    InvalidAppId,
    InvalidMchId,
    InvalidSignature,
    InvalidSubMchId,
    MissingFieldsError,
    ProtocolError,
    TransportError,
    WechatPayError,
    XMLParseError,
)

__all__ = [
    # interfaces
    "DefaultProfile", "PaymentMode", "ReturnCode", "SignType", "TradeType", "Transport",
    # operations
    "OPERATIONS", "OperationSpec",
    # payments
    "BillReport", "parse_bill",
    # errors
    "BusinessError", "ConfigurationError", "InvalidAppId", "InvalidMchId",
    "InvalidSignature", "InvalidSubMchId", "MissingFieldsError", "ProtocolError",
    "TransportError", "WechatPayError", "XMLParseError",
]

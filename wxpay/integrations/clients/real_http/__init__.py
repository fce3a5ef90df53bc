"""
Real HTTP integration clients.

These clients talk to the live (or sandbox) WeChat Pay gateway:
- ``HttpxTransport`` performs the raw exchange
- ``WechatPaymentsClient`` exposes one coroutine per gateway operation

Important:
- Must accept any ``Transport`` so the mock gateway in clients/mocks can stand in
  for the network during development and tests.
"""

from .payments import WechatPaymentsClient
from .transport import HttpxTransport

__all__ = ["WechatPaymentsClient", "HttpxTransport"]

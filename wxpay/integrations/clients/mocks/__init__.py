"""
Mock integration clients.

These stand in for the WeChat Pay gateway without calling any external API.
They are used when:
- merchant credentials or certificates are not available yet
- we want to exercise the full sign -> send -> validate path in tests

Important:
- Mocks implement the SAME ``Transport`` interface as the real HTTP transport.
- Replies are real signed XML bodies, validated by the normal client code.
"""

from .payments import MockGatewayTransport, MockRequest, SAMPLE_BILL

__all__ = ["MockGatewayTransport", "MockRequest", "SAMPLE_BILL"]

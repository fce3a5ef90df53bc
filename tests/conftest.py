"""Pytest fixtures for the WeChat Pay client tests."""

import pytest

from wxpay.config import ClientConfig
from wxpay.integrations.clients.mocks.payments import MockGatewayTransport
from wxpay.integrations.clients.real_http.payments import WechatPaymentsClient
from wxpay.integrations.policy.request_builder import build_xml
from wxpay.integrations.policy.signing import get_sign


@pytest.fixture
def config_values():
    """Minimal complete configuration; tests copy and tweak it."""
    return {
        "app_id": "wx1",
        "partner_key": "key1",
        "mch_id": "mch1",
        "notify_url": "https://shop.example.com/wxpay/notify",
        "cert_path": "certs/apiclient_cert.pem",
        "key_path": "certs/apiclient_key.pem",
    }


@pytest.fixture
def config(config_values):
    return ClientConfig(**config_values)


@pytest.fixture
def gateway(config):
    """In-memory gateway answering as the same merchant the client is configured for."""
    return MockGatewayTransport(app_id=config.app_id, mch_id=config.mch_id, partner_key=config.partner_key)


@pytest.fixture
def client(config, gateway):
    return WechatPaymentsClient(config, transport=gateway)


@pytest.fixture
def signed_xml():
    """Build a response body signed with ``key`` (defaults to the test partner key)."""

    def _build(fields, key="key1", sign_type="MD5"):
        body = dict(fields)
        body["sign"] = get_sign(body, key, sign_type)
        return build_xml(body)

    return _build

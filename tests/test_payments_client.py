import hashlib

import pytest

from wxpay.config import ClientConfig
from wxpay.integrations.clients.mocks.payments import MockGatewayTransport
from wxpay.integrations.clients.real_http.payments import WechatPaymentsClient
from wxpay.integrations.contracts.interfaces import PaymentMode
from wxpay.integrations.contracts.payments import BillReport
from wxpay.integrations.policy.errors import (
    BusinessError,
    InvalidAppId,
    InvalidSignature,
    MissingFieldsError,
    ProtocolError,
    TransportError,
)
from wxpay.integrations.policy.signing import get_sign, to_query_string, verify_sign

NATIVE_ORDER = {
    "body": "T",
    "out_trade_no": "1",
    "total_fee": "100",
    "spbill_create_ip": "1.2.3.4",
    "trade_type": "NATIVE",
    "product_id": "p1",
}

RED_PACKET = {
    "mch_billno": "b1",
    "send_name": "shop",
    "re_openid": "o1",
    "total_amount": 100,
    "total_num": 1,
    "wishing": "hi",
    "client_ip": "1.2.3.4",
    "act_name": "act",
    "remark": "r",
}

TRANSFER = {
    "partner_trade_no": "t1",
    "openid": "o1",
    "check_name": "NO_CHECK",
    "amount": 100,
    "desc": "payout",
    "spbill_create_ip": "1.2.3.4",
}


@pytest.mark.asyncio
async def test_unified_order_end_to_end(client, gateway):
    data = await client.unified_order(NATIVE_ORDER)

    assert data["prepay_id"].startswith("wx")
    assert data["code_url"].startswith("weixin://wxpay/bizpayurl")

    sent = gateway.last_request()
    assert sent.url == "https://api.mch.weixin.qq.com/pay/unifiedorder"
    assert sent.use_cert is False
    assert sent.received_at.tzinfo is not None
    assert sent.fields["appid"] == "wx1"
    assert sent.fields["mch_id"] == "mch1"
    assert len(sent.fields["nonce_str"]) == 32
    for key, value in NATIVE_ORDER.items():
        assert sent.fields[key] == value
    assert verify_sign(sent.fields, "key1")


@pytest.mark.asyncio
async def test_missing_fields_fail_before_any_network_call(client, gateway):
    with pytest.raises(MissingFieldsError) as excinfo:
        await client.unified_order({"trade_type": "NATIVE"})

    assert "product_id" in excinfo.value.missing
    assert gateway.requests == []


@pytest.mark.asyncio
async def test_client_stays_usable_after_an_error(client):
    with pytest.raises(MissingFieldsError):
        await client.order_query({})

    data = await client.unified_order(NATIVE_ORDER)
    assert data["result_code"] == "SUCCESS"


@pytest.mark.asyncio
async def test_order_query_and_close(client):
    await client.unified_order(NATIVE_ORDER)

    data = await client.order_query({"out_trade_no": "1"})
    assert data["trade_state"] == "NOTPAY"

    await client.close_order({"out_trade_no": "1"})
    data = await client.order_query({"transaction_id": data["transaction_id"]})
    assert data["trade_state"] == "CLOSED"


@pytest.mark.asyncio
async def test_unknown_order_is_a_business_error(client):
    with pytest.raises(BusinessError) as excinfo:
        await client.order_query({"out_trade_no": "missing"})
    assert excinfo.value.err_code == "ORDERNOTEXIST"


@pytest.mark.asyncio
async def test_refund_uses_certificate_channel_and_operator_default(client, gateway):
    await client.unified_order(NATIVE_ORDER)

    data = await client.refund({"out_trade_no": "1", "out_refund_no": "r1", "total_fee": 100, "refund_fee": 40})
    assert data["refund_id"]
    assert data["refund_fee"] == "40"

    sent = gateway.last_request()
    assert sent.use_cert is True
    assert sent.url.endswith("/secapi/pay/refund")
    assert sent.fields["op_user_id"] == "mch1"

    query = await client.refund_query({"out_refund_no": "r1"})
    assert query["refund_count"] == "1"
    assert query["refund_status_0"] == "SUCCESS"


@pytest.mark.asyncio
async def test_download_bill_falls_back_to_tabular_report(client):
    report = await client.download_bill({"bill_date": "20240301", "bill_type": "ALL"})

    assert isinstance(report, BillReport)
    assert len(report.records) == 2
    assert report.records[0]["商户订单号"] == "order-1"
    assert report.records[1]["总金额"] == "2.50"
    assert report.summary["总交易单数"] == "2"


@pytest.mark.asyncio
async def test_download_bill_surfaces_gateway_failures(client, gateway):
    gateway.respond_with("downloadbill", {"return_code": "FAIL", "return_msg": "No Bill Exist"}, sign=False)

    with pytest.raises(ProtocolError) as excinfo:
        await client.download_bill({"bill_date": "20240301", "bill_type": "ALL"})
    assert excinfo.value.return_msg == "No Bill Exist"


@pytest.mark.asyncio
async def test_short_url_sends_encoded_long_url(client, gateway):
    data = await client.short_url({"long_url": "weixin://wxpay/bizpayurl?pr=abc"})

    assert data["short_url"].startswith("weixin://wxpay/s/")
    assert gateway.last_request().fields["long_url"] == "weixin%3A%2F%2Fwxpay%2Fbizpayurl%3Fpr%3Dabc"


@pytest.mark.asyncio
async def test_red_packets(client, gateway):
    data = await client.send_red_packet(RED_PACKET)
    assert data["send_listid"]

    sent = gateway.last_request()
    assert sent.use_cert is True
    assert sent.fields["wxappid"] == "wx1"
    assert "appid" not in sent.fields

    data = await client.red_packet_query({"mch_billno": "b1"})
    assert data["status"] == "RECEIVED"
    assert gateway.last_request().fields["bill_type"] == "MCHT"


@pytest.mark.asyncio
async def test_transfers(client, gateway):
    data = await client.transfers(TRANSFER)
    assert data["payment_no"]
    assert data["mchid"] == "mch1"

    sent = gateway.last_request()
    assert sent.fields["mch_appid"] == "wx1"
    assert sent.fields["mchid"] == "mch1"
    assert "mch_id" not in sent.fields

    data = await client.transfers_query({"partner_trade_no": "t1"})
    assert data["status"] == "SUCCESS"


@pytest.mark.asyncio
async def test_transport_errors_propagate(client, gateway):
    gateway.respond_with("orderquery", error=TransportError("connection reset", url="x"))

    with pytest.raises(TransportError):
        await client.order_query({"out_trade_no": "1"})


@pytest.mark.asyncio
async def test_gateway_signature_mismatch_is_reported(client, gateway):
    gateway.respond_with("unifiedorder", {"sign": "0" * 32}, sign=False)

    with pytest.raises(InvalidSignature):
        await client.unified_order(NATIVE_ORDER)


@pytest.mark.asyncio
async def test_gateway_answering_for_another_app_is_rejected(config):
    gateway = MockGatewayTransport(app_id="wx-other", mch_id="mch1", partner_key="key1")
    client = WechatPaymentsClient(config, transport=gateway)

    with pytest.raises(InvalidAppId):
        await client.unified_order(NATIVE_ORDER)


@pytest.mark.asyncio
async def test_requests_signed_with_another_key_are_refused(config):
    gateway = MockGatewayTransport(app_id="wx1", mch_id="mch1", partner_key="other-key")
    client = WechatPaymentsClient(config, transport=gateway)

    with pytest.raises(ProtocolError) as excinfo:
        await client.unified_order(NATIVE_ORDER)
    assert excinfo.value.return_msg == "签名错误"


@pytest.mark.asyncio
async def test_sandbox_mode_targets_sandbox_urls(config_values, gateway):
    config = ClientConfig(**config_values, mode=PaymentMode.SANDBOX)
    client = WechatPaymentsClient(config, transport=gateway)

    await client.unified_order(NATIVE_ORDER)
    assert gateway.last_request().url == "https://api.mch.weixin.qq.com/sandbox/pay/unifiedorder"


@pytest.mark.asyncio
async def test_brand_wcpay_params_sign_the_prepay_token(client):
    params = await client.get_brand_wcpay_request_params(NATIVE_ORDER)

    assert params["appId"] == "wx1"
    assert params["signType"] == "MD5"
    assert params["package"].startswith("prepay_id=wx")
    assert params["code_url"].startswith("weixin://")
    assert params["timestamp"] == params["timeStamp"]

    signed = {k: params[k] for k in ("appId", "timeStamp", "nonceStr", "signType", "package")}
    assert params["paySign"] == get_sign(signed, "key1")


@pytest.mark.asyncio
async def test_brand_wcpay_params_for_jsapi_and_mweb(client):
    jsapi = {k: v for k, v in NATIVE_ORDER.items() if k != "product_id"}
    params = await client.get_brand_wcpay_request_params({**jsapi, "trade_type": "JSAPI", "openid": "o1"})
    assert "code_url" not in params
    assert "mweb_url" not in params

    params = await client.get_brand_wcpay_request_params({**jsapi, "out_trade_no": "2", "trade_type": "MWEB"})
    assert params["mweb_url"].startswith("https://wx.tenpay.com/")


@pytest.mark.asyncio
async def test_brand_wcpay_params_stop_when_order_creation_fails(client, gateway):
    gateway.respond_with("unifiedorder", {"result_code": "FAIL", "err_code": "ORDERPAID"})

    with pytest.raises(BusinessError) as excinfo:
        await client.get_brand_wcpay_request_params(NATIVE_ORDER)
    assert excinfo.value.err_code == "ORDERPAID"
    assert len(gateway.requests) == 1


@pytest.mark.asyncio
async def test_brand_wcpay_params_need_a_prepay_id(client, gateway):
    gateway.respond_with("unifiedorder", {"prepay_id": None})

    with pytest.raises(ProtocolError) as excinfo:
        await client.get_brand_wcpay_request_params(NATIVE_ORDER)
    assert "prepay_id" in excinfo.value.return_msg
    assert "prepay_id" not in excinfo.value.data


def test_edit_address_params_are_sha1_signed(client):
    params = client.get_edit_address_params("https://shop.example.com/?code=c&state=s", "token-1")

    assert params["scope"] == "jsapi_address"
    assert params["signType"] == "SHA1"
    canonical = to_query_string(
        {
            "appid": "wx1",
            "url": "https://shop.example.com/?code=c&state=s",
            "timestamp": params["timeStamp"],
            "noncestr": params["nonceStr"],
            "accesstoken": "token-1",
        }
    )
    assert params["addrSign"] == hashlib.sha1(canonical.encode("utf-8")).hexdigest()


def test_edit_address_params_require_url_and_token(client):
    with pytest.raises(MissingFieldsError) as excinfo:
        client.get_edit_address_params("", "")
    assert excinfo.value.missing == ["url", "accessToken"]

import logging

from wxpay.error_handler import ErrorHandler
from wxpay.integrations.policy.errors import InvalidSignature


def test_handle_exception_returns_fail_payload():
    eh = ErrorHandler()
    out = eh.handle_exception(Exception("boom"), context={"k": "v"})
    assert out["return_code"] == "FAIL"
    assert out["return_msg"] == "internal error"
    assert "boom" in out["metadata"]["error"]
    assert out["metadata"]["context"] == {"k": "v"}


def test_handle_exception_names_protocol_errors():
    eh = ErrorHandler()
    out = eh.handle_exception(InvalidSignature("AAA", "BBB"))
    assert out["return_code"] == "FAIL"
    assert out["return_msg"].startswith("InvalidSignature")


def test_handle_exception_logs_context(caplog):
    eh = ErrorHandler()
    with caplog.at_level(logging.WARNING, logger="wxpay.error_handler"):
        eh.handle_exception(InvalidSignature("AAA", "BBB"), context={"path": "/wxpay/notify"})
        eh.handle_exception(RuntimeError("boom"), context={"path": "/other"})

    messages = [record.getMessage() for record in caplog.records]
    assert "/wxpay/notify" in messages[0]
    assert "/other" in messages[1]

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from fastapi import APIRouter, Request
from fastapi.responses import Response

from wxpay.error_handler import ErrorHandler
from wxpay.integrations.clients.real_http.payments import WechatPaymentsClient
from wxpay.integrations.contracts.interfaces import ReturnCode
from wxpay.integrations.policy.request_builder import build_xml

logger = logging.getLogger(__name__)

NotifyHandler = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]

error_handler = ErrorHandler()


def xml_reply(return_code: str, return_msg: str) -> Response:
    body = build_xml({"return_code": return_code, "return_msg": return_msg})
    return Response(content=body, media_type="application/xml")


def create_notify_router(
    client: WechatPaymentsClient,
    on_notify: Optional[NotifyHandler] = None,
    path: str = "/wxpay/notify",
) -> APIRouter:
    """
    Router receiving the gateway's asynchronous payment notifications.

    The body must be a signed gateway message for this merchant (status code,
    identity fields, signature). Failed payments (``result_code=FAIL``) are
    delivered to ``on_notify`` like successful ones. Any error raised while
    verifying or handling turns into a FAIL reply so the gateway retries.
    """
    router = APIRouter()

    @router.post(path, tags=["Notify"])
    async def payment_notify(request: Request):
        raw_body = await request.body()
        try:
            data = client.validate_notification(raw_body)
            logger.info(
                "Payment notification (result_code=%s) for out_trade_no=%s transaction_id=%s",
                data.get("result_code"),
                data.get("out_trade_no"),
                data.get("transaction_id"),
            )
            if on_notify is not None:
                result = on_notify(data)
                if inspect.isawaitable(result):
                    await result
        except Exception as exc:
            failure = error_handler.handle_exception(exc, context={"path": path})
            return xml_reply(failure["return_code"], failure["return_msg"])
        return xml_reply(ReturnCode.SUCCESS.value, "OK")

    return router

"""Error handling helpers for the payment notification receiver."""
from typing import Any, Dict
import logging

from wxpay.integrations.contracts.interfaces import ReturnCode
from wxpay.integrations.policy.errors import WechatPayError

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Dict[str, Any]:
        """Log ``exc`` with its context and return the FAIL reply fields the gateway expects."""
        context = context or {}
        if isinstance(exc, WechatPayError):
            logger.warning("Rejected WeChat Pay notification: %s %s context=%s", exc.error_code, exc.message, context)
            message = exc.error_code if not exc.message else f"{exc.error_code}: {exc.message}"
        else:
            logger.error("Unhandled exception in notification handler: %s context=%s", exc, context, exc_info=True)
            message = "internal error"
        return {
            "return_code": ReturnCode.FAIL.value,
            "return_msg": message,
            "metadata": {"error": str(exc), "context": context},
        }

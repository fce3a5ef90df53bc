"""
FastAPI application - payment notification receiver
"""

from dotenv import load_dotenv

load_dotenv()

import logging
from typing import Optional

from fastapi import FastAPI

from wxpay.api.endpoints.notify import NotifyHandler, create_notify_router
from wxpay.config import ClientConfig
from wxpay.integrations.clients.real_http.payments import WechatPaymentsClient

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(
    config: Optional[ClientConfig] = None,
    on_notify: Optional[NotifyHandler] = None,
    client: Optional[WechatPaymentsClient] = None,
) -> FastAPI:
    client = client or WechatPaymentsClient(config or ClientConfig.from_env())

    app = FastAPI(
        title="WeChat Pay Notification Receiver",
        description="Validates and acknowledges WeChat Pay payment notifications",
        version="0.1.0",
    )
    app.include_router(create_notify_router(client, on_notify))

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok", "mode": client.config.mode.value}

    logger.info("Notification receiver ready (mode=%s, mch_id=%s)", client.config.mode.value, client.config.mch_id)
    return app

"""
Real HTTP transport.

Purpose:
- Performs the single request/response exchange with the WeChat Pay gateway
- Attaches the merchant client certificate for the secure endpoints
  (refunds, red packets, transfers)

Implementation notes:
- Uses httpx for async requests
- Every network or HTTP status failure is raised as ``TransportError``; the
  caller decides whether to retry
"""

from __future__ import annotations

import logging
import ssl
from typing import Optional

import httpx

from wxpay.config import ClientConfig
from wxpay.integrations.contracts.interfaces import Transport
from wxpay.integrations.policy.errors import TransportError

logger = logging.getLogger(__name__)

XML_HEADERS = {"Content-Type": "text/xml; charset=utf-8"}


class HttpxTransport(Transport):
    def __init__(
        self,
        config: ClientConfig,
        timeout_seconds: Optional[float] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self.http_transport = http_transport
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else config.timeout_seconds
        self._ssl_context: Optional[ssl.SSLContext] = None

    def _client_cert_context(self) -> ssl.SSLContext:
        if self._ssl_context is None:
            context = ssl.create_default_context()
            context.load_cert_chain(
                certfile=self.config.cert_path,
                keyfile=self.config.key_path,
                password=self.config.passphrase,
            )
            self._ssl_context = context
        return self._ssl_context

    def _client_kwargs(self, url: str, use_cert: bool) -> dict:
        kwargs = {"timeout": self.timeout_seconds}
        if self.http_transport is not None:
            kwargs["transport"] = self.http_transport
        if not use_cert:
            return kwargs
        try:
            kwargs["verify"] = self._client_cert_context()
        except (OSError, ssl.SSLError) as exc:
            raise TransportError(f"Unable to load client certificate: {exc}", url=url) from exc
        return kwargs

    async def post(self, url: str, body: str, *, use_cert: bool = False) -> str:
        kwargs = self._client_kwargs(url, use_cert)
        try:
            logger.info(f"Posting WeChat Pay request to {url}")
            async with httpx.AsyncClient(**kwargs) as client:
                response = await client.post(url, content=body.encode("utf-8"), headers=XML_HEADERS)
                response.raise_for_status()
                logger.info(f"Received WeChat Pay response: status={response.status_code}")
                return response.text
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error from WeChat Pay gateway: {e.response.status_code} {e.response.text}")
            raise TransportError(
                f"Gateway returned HTTP {e.response.status_code}",
                url=url,
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Request error connecting to WeChat Pay gateway: {e}")
            raise TransportError(f"Request to gateway failed: {e}", url=url) from e


__all__ = ["HttpxTransport", "XML_HEADERS"]

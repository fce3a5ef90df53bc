"""
Client configuration.

A ``ClientConfig`` is built once and shared read-only by every call a client
makes. ``ClientConfig.from_env()`` reads the same values from ``WXPAY_*``
environment variables (a local ``.env`` file is loaded first).
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from wxpay.integrations.contracts.interfaces import PaymentMode, SignType, parse_enum
from wxpay.integrations.policy.errors import ConfigurationError


class ClientConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_id: str = Field(..., min_length=1)
    partner_key: str = Field(..., min_length=1)
    mch_id: str = Field(..., min_length=1)
    sub_mch_id: Optional[str] = None
    notify_url: str = Field(..., min_length=1)
    cert_path: str = Field(..., min_length=1)    # PEM client certificate (or combined cert + key)
    key_path: Optional[str] = None
    passphrase: Optional[str] = None     # falls back to mch_id
    mode: PaymentMode = PaymentMode.PRODUCTION
    sign_type: SignType = SignType.MD5
    timeout_seconds: float = 20.0

    @model_validator(mode="before")
    @classmethod
    def _default_passphrase(cls, values: Any) -> Any:
        if isinstance(values, dict) and not values.get("passphrase"):
            values = dict(values)
            values["passphrase"] = values.get("mch_id")
        return values

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        load_dotenv()

        values: Dict[str, Any] = {
            "app_id": os.getenv("WXPAY_APP_ID", ""),
            "partner_key": os.getenv("WXPAY_PARTNER_KEY", ""),
            "mch_id": os.getenv("WXPAY_MCH_ID", ""),
            "sub_mch_id": os.getenv("WXPAY_SUB_MCH_ID") or None,
            "notify_url": os.getenv("WXPAY_NOTIFY_URL", ""),
            "cert_path": os.getenv("WXPAY_CERT_PATH", ""),
            "key_path": os.getenv("WXPAY_KEY_PATH") or None,
            "passphrase": os.getenv("WXPAY_PASSPHRASE") or None,
        }
        try:
            values["mode"] = parse_enum(PaymentMode, os.getenv("WXPAY_MODE"), PaymentMode.PRODUCTION)
            values["sign_type"] = parse_enum(SignType, os.getenv("WXPAY_SIGN_TYPE"), SignType.MD5)
            values["timeout_seconds"] = float(os.getenv("WXPAY_TIMEOUT_SECONDS", "20"))
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        missing = [
            env for env, key in (
                ("WXPAY_APP_ID", "app_id"),
                ("WXPAY_PARTNER_KEY", "partner_key"),
                ("WXPAY_MCH_ID", "mch_id"),
                ("WXPAY_NOTIFY_URL", "notify_url"),
                ("WXPAY_CERT_PATH", "cert_path"),
            )
            if not values[key] and key not in overrides
        ]
        if missing:
            raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")

        values.update(overrides)
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid WeChat Pay configuration: {exc}") from exc

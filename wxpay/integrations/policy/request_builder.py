"""
Request builder.

Turns caller fields for one operation into the signed XML body the gateway
expects. All local validation happens here, before any network call.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional
from urllib.parse import quote

import xmltodict

from wxpay.config import ClientConfig
from wxpay.integrations.contracts.operations import PROFILE_FIELDS, OperationSpec
from wxpay.integrations.policy.errors import MissingFieldsError
from wxpay.integrations.policy.signing import generate_nonce_str, get_sign

logger = logging.getLogger(__name__)

ROOT_TAG = "xml"

# Same unreserved set as JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def field_value(value: Any) -> str:
    """Wire form of one field value; booleans use the gateway's lower-case spelling."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_xml(fields: Mapping[str, Any]) -> str:
    return xmltodict.unparse({ROOT_TAG: dict(fields)}, full_document=False)


def find_missing(fields: Mapping[str, Any], required) -> List[str]:
    """Return every required entry none of whose alternatives has a value."""
    missing: List[str] = []
    for entry in required:
        if not any(fields.get(name) for name in entry.split("|")):
            missing.append(entry)
    return missing


class RequestBuilder:
    def __init__(self, config: ClientConfig, nonce_factory: Optional[Callable[[], str]] = None) -> None:
        self.config = config
        self._nonce_factory = nonce_factory or generate_nonce_str

    def _profile_defaults(self, spec: OperationSpec) -> Dict[str, Any]:
        sources: Dict[str, Callable[[], Any]] = {
            "appid": lambda: self.config.app_id,
            "mch_id": lambda: self.config.mch_id,
            "sub_mch_id": lambda: self.config.sub_mch_id,
            "nonce_str": self._nonce_factory,
        }
        defaults: Dict[str, Any] = {}
        for name in PROFILE_FIELDS[spec.default_profile]:
            value = sources[name]()
            if value:
                defaults[name] = value
        for name, resolve in spec.extra_defaults:
            value = resolve(self.config)
            if value:
                defaults[name] = value
        return defaults

    def prepare(self, spec: OperationSpec, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Merge defaults, sign, encode and validate; returns the final string field map."""
        merged = self._profile_defaults(spec)
        merged.update({k: v for k, v in fields.items() if k != "sign" and v is not None})
        prepared = {key: field_value(value) for key, value in merged.items()}

        prepared["sign"] = get_sign(prepared, self.config.partner_key, self.config.sign_type)

        if prepared.get("long_url"):
            prepared["long_url"] = quote(prepared["long_url"], safe=_URI_COMPONENT_SAFE)

        missing = find_missing(prepared, spec.required_for(prepared))
        if missing:
            logger.warning("Rejected %s request, missing params: %s", spec.name, ",".join(missing))
            raise MissingFieldsError(missing)

        return prepared

    def build(self, spec: OperationSpec, fields: Mapping[str, Any]) -> str:
        prepared = self.prepare(spec, fields)
        logger.debug("Built %s request with fields: %s", spec.name, sorted(k for k in prepared if k != "sign"))
        return build_xml(prepared)


__all__ = ["RequestBuilder", "build_xml", "field_value", "find_missing", "ROOT_TAG"]

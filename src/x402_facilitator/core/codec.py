"""
Encoding, decoding and validation of x402 payment payloads.

Authorization amounts and validity windows are uint256 values, so they travel
as base-10 strings inside the JSON envelope and are turned back into ``int``
on the receiving side before the payload is validated.
"""

from __future__ import annotations

import copy
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .encoding import safe_base64_decode, safe_base64_encode
from .errors import (
    AuthorizationError,
    PayloadDecodeError,
    PayloadEncodeError,
    StructureError,
    UnknownPayloadTypeError,
)

__all__ = [
    "AUTHORIZATION_PAYLOAD_TYPES",
    "PayloadVariant",
    "decode_payment_payload",
    "encode_payment_payload",
    "validate_payment_payload",
]

# uint256 values have at most 78 decimal digits.
_DECIMAL_RE = re.compile(r"[0-9]{1,78}")
MAX_UINT256 = 2**256 - 1

_Violations = List[Tuple[str, str]]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_uint256(value: Any) -> bool:
    return _is_int(value) and 0 <= value <= MAX_UINT256


def _parse_uint(value: Any) -> Optional[int]:
    if isinstance(value, str) and _DECIMAL_RE.fullmatch(value):
        return int(value)
    return None


@dataclass(frozen=True)
class PayloadVariant:
    """
    One arm of the ``payload.type`` union.

    ``numeric_fields`` name the authorization fields carried as decimal strings
    on the wire; ``string_fields`` must be ``str`` after decoding.
    """

    tag: str
    numeric_fields: Tuple[str, ...]
    string_fields: Tuple[str, ...]

    def to_wire(self, payload: Dict[str, Any]) -> None:
        authorization = payload.get("authorization")
        if not isinstance(authorization, dict):
            return
        for field in self.numeric_fields:
            if field in authorization:
                authorization[field] = str(authorization[field])

    def from_wire(self, payload: Dict[str, Any]) -> None:
        authorization = payload.get("authorization")
        if not isinstance(authorization, dict):
            return
        # Values that do not parse stay as they are and are reported by violations().
        for field in self.numeric_fields:
            parsed = _parse_uint(authorization.get(field))
            if parsed is not None:
                authorization[field] = parsed

    def violations(self, payload: Mapping[str, Any]) -> _Violations:
        found: _Violations = []
        authorization = payload.get("authorization")
        if not isinstance(authorization, Mapping):
            found.append(("authorization", "missing or not an object"))
        else:
            for field in self.numeric_fields:
                value = authorization.get(field)
                if not _is_uint256(value):
                    found.append(
                        (
                            f"authorization.{field}",
                            f"must be a uint256 integer, got {type(value).__name__}",
                        )
                    )
            for field in self.string_fields:
                if not isinstance(authorization.get(field), str):
                    found.append((f"authorization.{field}", "must be a string"))

        signature = payload.get("signature")
        if not isinstance(signature, str) or not signature.startswith("0x"):
            found.append(("signature", "must be a string starting with 0x"))
        return found


def _authorization_variant(tag: str) -> PayloadVariant:
    return PayloadVariant(
        tag=tag,
        numeric_fields=("value", "validAfter", "validBefore"),
        string_fields=("nonce", "version"),
    )


_VARIANTS: Dict[str, PayloadVariant] = {
    tag: _authorization_variant(tag)
    for tag in ("authorization", "authorizationEip3009")
}

AUTHORIZATION_PAYLOAD_TYPES = frozenset(_VARIANTS)


def _variant_for(envelope: Any) -> Optional[PayloadVariant]:
    if not isinstance(envelope, dict):
        return None
    payload = envelope.get("payload")
    if not isinstance(payload, dict):
        return None
    tag = payload.get("type")
    if not isinstance(tag, str):
        return None
    return _VARIANTS.get(tag)


def _apply(envelope: Any, step: Callable[[PayloadVariant, Dict[str, Any]], None]) -> Any:
    variant = _variant_for(envelope)
    if variant is not None:
        step(variant, envelope["payload"])
    return envelope


def encode_payment_payload(payment: Mapping[str, Any]) -> str:
    """
    Encode ``payment`` into the base64 string sent in headers and request bodies.

    The input is not validated and never modified.
    """
    try:
        wire = _apply(
            copy.deepcopy(dict(payment)),
            lambda variant, payload: variant.to_wire(payload),
        )
        text = json.dumps(wire, separators=(",", ":"))
    except (TypeError, ValueError, copy.Error) as exc:
        raise PayloadEncodeError(f"Failed to encode payment payload: {exc}") from exc
    return safe_base64_encode(text)


def decode_payment_payload(encoded: str) -> Dict[str, Any]:
    """
    Decode a payment header produced by :func:`encode_payment_payload`.

    Numeric authorization fields are restored as ``int`` and the result is
    passed through :func:`validate_payment_payload`. Any failure raises a
    :class:`PayloadDecodeError` subclass; nothing is returned partially.
    """
    if not isinstance(encoded, str):
        raise PayloadDecodeError(
            f"Encoded payment payload must be a string, got {type(encoded).__name__}"
        )
    try:
        parsed = json.loads(safe_base64_decode(encoded))
    except ValueError as exc:
        raise PayloadDecodeError(f"Failed to decode payment payload: {exc}") from exc

    _apply(parsed, lambda variant, payload: variant.from_wire(payload))
    return validate_payment_payload(parsed)


def validate_payment_payload(obj: Any) -> Any:
    """Return ``obj`` unchanged if it is a well-formed payment payload, raise otherwise."""
    if not isinstance(obj, Mapping):
        raise StructureError("Invalid payment payload structure: not an object")
    payload = obj.get("payload")
    if not isinstance(payload, Mapping):
        raise StructureError("Invalid payment payload structure: missing payload object")
    tag = payload.get("type")
    if not tag:
        raise StructureError("Invalid payment payload structure: missing payload type")

    variant = _VARIANTS.get(tag) if isinstance(tag, str) else None
    if variant is None:
        raise UnknownPayloadTypeError(tag)

    violations = variant.violations(payload)
    if violations:
        raise AuthorizationError(violations)
    return obj

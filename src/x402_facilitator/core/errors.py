"""
Exception hierarchy shared by the codec, the sanitizer and the facilitator client.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

__all__ = [
    "AuthorizationError",
    "ConversionError",
    "InputTypeError",
    "PayloadDecodeError",
    "PayloadEncodeError",
    "PayloadError",
    "PaymentRejectedError",
    "SanitizeError",
    "StructureError",
    "TransportError",
    "UnknownPayloadTypeError",
    "X402Error",
]


class X402Error(Exception):
    """Base class for every error raised by this package."""


class PayloadError(X402Error, ValueError):
    """A payment payload could not be encoded or decoded."""


class PayloadEncodeError(PayloadError):
    """Raised when a payment payload cannot be serialized for transport."""


class PayloadDecodeError(PayloadError):
    """Raised when an encoded payment payload cannot be turned back into a payload."""


class StructureError(PayloadDecodeError):
    """The decoded envelope is missing the ``payload`` object or its ``type``."""


class AuthorizationError(PayloadDecodeError):
    """
    One or more authorization fields failed their type or format check.

    ``violations`` holds one ``(field, reason)`` pair per offending field so
    callers see every problem at once.
    """

    def __init__(self, violations: Sequence[Tuple[str, str]]) -> None:
        self.violations: Tuple[Tuple[str, str], ...] = tuple(violations)
        details = "; ".join(f"{field}: {reason}" for field, reason in self.violations)
        super().__init__(f"Invalid authorization payload values ({details})")

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(field for field, _ in self.violations)


class UnknownPayloadTypeError(PayloadDecodeError):
    """The ``payload.type`` discriminator is not a supported variant."""

    def __init__(self, payload_type: Any) -> None:
        self.payload_type = payload_type
        super().__init__(f"Invalid payload type: {payload_type!r}")


class SanitizeError(X402Error):
    """Base class for JSON-safety conversion failures."""


class InputTypeError(SanitizeError, TypeError):
    """The sanitizer was handed a primitive instead of an object or array."""


class ConversionError(SanitizeError):
    """An unexpected failure aborted a JSON-safety conversion."""


class TransportError(X402Error):
    """
    The facilitator could not be reached or answered with a non-success status.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.body = body


class PaymentRejectedError(X402Error):
    """The facilitator reported the payment payload as invalid."""

    def __init__(self, result: Any) -> None:
        self.result = result
        message = getattr(result, "error_message", None) or result
        super().__init__(f"Payment rejected: {message}")

"""
Public facade for the x402 facilitator client package.

The most useful pieces are re-exported so integrators can
``from x402_facilitator import ...`` without navigating the package.
"""

from .api import create_facilitator_client, create_payment_client, send_payment
from .core import (
    AuthorizationError,
    ConfigError,
    ConversionError,
    DEFAULT_FACILITATOR_URL,
    FacilitatorClient,
    FacilitatorConfig,
    InputTypeError,
    PayloadDecodeError,
    PayloadEncodeError,
    PaymentClient,
    PaymentConfig,
    PaymentParameters,
    PaymentRejectedError,
    SettlementResult,
    StructureError,
    TransportError,
    UnknownPayloadTypeError,
    VerificationResult,
    X402Error,
    build_payment_payload,
    create_payment_header,
    decode_payment_payload,
    encode_payment_payload,
    load_facilitator_config,
    load_payment_config,
    to_json_safe,
    validate_payment_payload,
)

__all__ = (
    "AuthorizationError",
    "ConfigError",
    "ConversionError",
    "DEFAULT_FACILITATOR_URL",
    "FacilitatorClient",
    "FacilitatorConfig",
    "InputTypeError",
    "PayloadDecodeError",
    "PayloadEncodeError",
    "PaymentClient",
    "PaymentConfig",
    "PaymentParameters",
    "PaymentRejectedError",
    "SettlementResult",
    "StructureError",
    "TransportError",
    "UnknownPayloadTypeError",
    "VerificationResult",
    "X402Error",
    "build_payment_payload",
    "create_facilitator_client",
    "create_payment_client",
    "create_payment_header",
    "decode_payment_payload",
    "encode_payment_payload",
    "load_facilitator_config",
    "load_payment_config",
    "send_payment",
    "to_json_safe",
    "validate_payment_payload",
)

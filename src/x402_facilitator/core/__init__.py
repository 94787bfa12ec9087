"""
Core primitives: payload codec, JSON-safety sanitizer, configuration, signer and client.
"""

from .client import (
    FacilitatorClient,
    PaymentClient,
    SettlementResult,
    VerificationResult,
    build_curl_command,
    send_payment,
)
from .codec import (
    AUTHORIZATION_PAYLOAD_TYPES,
    decode_payment_payload,
    encode_payment_payload,
    validate_payment_payload,
)
from .config import (
    DEFAULT_FACILITATOR_URL,
    ConfigError,
    FacilitatorConfig,
    PaymentConfig,
    PaymentParameters,
    load_facilitator_config,
    load_payment_config,
)
from .encoding import safe_base64_decode, safe_base64_encode
from .environment import SettingsEnvironment, build_environment, load_env_file
from .errors import (
    AuthorizationError,
    ConversionError,
    InputTypeError,
    PayloadDecodeError,
    PayloadEncodeError,
    PayloadError,
    PaymentRejectedError,
    SanitizeError,
    StructureError,
    TransportError,
    UnknownPayloadTypeError,
    X402Error,
)
from .payloads import (
    X402_VERSION,
    build_authorization_payload,
    build_payment_payload,
    create_payment_header,
)
from .sanitize import to_json_safe

__all__ = [
    "AUTHORIZATION_PAYLOAD_TYPES",
    "AuthorizationError",
    "ConfigError",
    "ConversionError",
    "DEFAULT_FACILITATOR_URL",
    "FacilitatorClient",
    "FacilitatorConfig",
    "InputTypeError",
    "PayloadDecodeError",
    "PayloadEncodeError",
    "PayloadError",
    "PaymentClient",
    "PaymentConfig",
    "PaymentParameters",
    "PaymentRejectedError",
    "SanitizeError",
    "SettingsEnvironment",
    "SettlementResult",
    "StructureError",
    "TransportError",
    "UnknownPayloadTypeError",
    "VerificationResult",
    "X402Error",
    "X402_VERSION",
    "build_authorization_payload",
    "build_curl_command",
    "build_environment",
    "build_payment_payload",
    "create_payment_header",
    "decode_payment_payload",
    "encode_payment_payload",
    "load_env_file",
    "load_facilitator_config",
    "load_payment_config",
    "safe_base64_decode",
    "safe_base64_encode",
    "send_payment",
    "to_json_safe",
    "validate_payment_payload",
]

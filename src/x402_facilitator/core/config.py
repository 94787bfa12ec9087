"""
Configuration objects for the facilitator client and the payment signer.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Mapping, Optional

from eth_account import Account
from eth_utils import is_hex_address, to_checksum_address

from .environment import build_environment

__all__ = [
    "AuthHeadersFactory",
    "ConfigError",
    "DEFAULT_FACILITATOR_URL",
    "FacilitatorConfig",
    "PaymentConfig",
    "PaymentParameters",
    "load_facilitator_config",
    "load_payment_config",
]

DEFAULT_FACILITATOR_URL = "https://facilitator.aeon.xyz"
DEFAULT_TIMEOUT_SECONDS = 30.0

# Returns {"verify": {...}, "settle": {...}} extra request headers.
AuthHeadersFactory = Callable[[], Mapping[str, Mapping[str, str]]]

_PARAMETER_TO_ENV_KEY = {
    "facilitator_url": "X402_FACILITATOR_URL",
    "request_timeout": "X402_FACILITATOR_TIMEOUT_SECONDS",
    "payer_private_key": "X402_PAYER_PRIVATE_KEY",
    "payer_address": "X402_PAYER_ADDRESS",
    "receiver_address": "X402_RECEIVER_ADDRESS",
    "amount": "X402_PAYMENT_AMOUNT",
    "token_address": "X402_PAYMENT_TOKEN_ADDRESS",
    "token_decimals": "X402_PAYMENT_TOKEN_DECIMALS",
    "token_symbol": "X402_PAYMENT_TOKEN_SYMBOL",
    "token_name": "X402_PAYMENT_TOKEN_NAME",
    "token_version": "X402_PAYMENT_TOKEN_VERSION",
    "chain_id": "X402_PAYMENT_CHAIN_ID",
    "network_id": "X402_PAYMENT_NETWORK_ID",
    "timeout_seconds": "X402_PAYMENT_TIMEOUT_SECONDS",
    "backdate_seconds": "X402_PAYMENT_BACKDATE_SECONDS",
    "description": "X402_PAYMENT_DESCRIPTION",
}


class ConfigError(ValueError):
    """Raised when the supplied configuration is invalid."""


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _int_setting(values: Mapping[str, str], key: str, default: str) -> int:
    raw = values.get(key, default)
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got '{raw}'") from exc


def _normalize_url(raw_url: str) -> str:
    url = raw_url.strip().rstrip("/")
    if not url.startswith(("http://", "https://")):
        raise ConfigError(f"X402_FACILITATOR_URL must be an http(s) URL, got '{raw_url}'")
    return url


def _normalize_private_key(raw_key: str) -> str:
    key = raw_key.strip()
    if not key:
        raise ConfigError("X402_PAYER_PRIVATE_KEY must not be empty")
    if not key.startswith("0x"):
        key = "0x" + key
    if len(key) != 66:
        raise ConfigError("X402_PAYER_PRIVATE_KEY must be 32 bytes (64 hex chars)")
    return key


def _normalize_address(raw_address: str, field_name: str) -> str:
    value = raw_address.strip()
    if not value:
        raise ConfigError(f"{field_name} must not be empty")
    if not value.startswith("0x"):
        value = "0x" + value
    if not is_hex_address(value):
        raise ConfigError(f"{field_name} is not a valid EVM address")
    return to_checksum_address(value)


def _to_base_units(amount: Decimal, decimals: int) -> int:
    scaled = amount * (Decimal(10) ** decimals)
    try:
        integral = scaled.to_integral_exact()
    except InvalidOperation as exc:
        raise ConfigError(
            f"Amount {amount} cannot be represented with {decimals} decimals"
        ) from exc

    if integral != scaled:
        raise ConfigError(
            f"Amount {amount} cannot be represented with {decimals} decimals"
        )
    as_int = int(integral)
    if as_int <= 0:
        raise ConfigError("Payment amount must be greater than zero")
    return as_int


@dataclass(frozen=True)
class PaymentParameters:
    """
    Keyword-style settings layered on top of the environment.

    Every field maps to one ``X402_*`` variable; ``None`` leaves the
    environment value in place.
    """

    facilitator_url: Optional[str] = None
    request_timeout: Optional[float | str] = None
    payer_private_key: Optional[str] = None
    payer_address: Optional[str] = None
    receiver_address: Optional[str] = None
    amount: Optional[Decimal | str | int] = None
    token_address: Optional[str] = None
    token_decimals: Optional[int | str] = None
    token_symbol: Optional[str] = None
    token_name: Optional[str] = None
    token_version: Optional[str] = None
    chain_id: Optional[int | str] = None
    network_id: Optional[str] = None
    timeout_seconds: Optional[int | str] = None
    backdate_seconds: Optional[int | str] = None
    description: Optional[str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is not None:
                overrides[env_key] = _stringify(value)
        return overrides


@dataclass(frozen=True)
class FacilitatorConfig:
    """
    Where and how to reach the facilitator service.

    ``url`` defaults to the public Aeon facilitator. ``create_auth_headers``
    is called before every request and may return extra headers for the
    ``verify`` and ``settle`` endpoints.
    """

    url: str = DEFAULT_FACILITATOR_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    create_auth_headers: Optional[AuthHeadersFactory] = None

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, str],
        *,
        create_auth_headers: Optional[AuthHeadersFactory] = None,
    ) -> "FacilitatorConfig":
        url = _normalize_url(values.get("X402_FACILITATOR_URL", DEFAULT_FACILITATOR_URL))
        raw_timeout = values.get("X402_FACILITATOR_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
        try:
            timeout = float(raw_timeout)
        except ValueError as exc:
            raise ConfigError(
                f"X402_FACILITATOR_TIMEOUT_SECONDS must be a number, got '{raw_timeout}'"
            ) from exc
        if timeout <= 0:
            raise ConfigError("X402_FACILITATOR_TIMEOUT_SECONDS must be positive")
        return cls(url=url, timeout_seconds=timeout, create_auth_headers=create_auth_headers)


@dataclass(frozen=True)
class PaymentConfig:
    facilitator: FacilitatorConfig
    payer_private_key: str
    payer_address: str
    receiver_address: str
    token_address: str
    amount_decimal: Decimal
    amount_base_units: int
    token_decimals: int
    max_timeout_seconds: int
    backdate_seconds: int
    description: str
    token_symbol: str = "x402BNB"
    token_name: str = "x402 Wrapped BNB"
    token_version: str = "1"
    chain_id: int = 56
    network_id: str = "56"

    @property
    def facilitator_url(self) -> str:
        return self.facilitator.url

    def payment_requirements(self) -> Dict[str, Any]:
        """
        Payment requirements in the shape the Aeon facilitator expects.

        ``amountRequired`` stays a ``Decimal``; the client sanitizes the
        requirements before they are sent.
        """
        return {
            "scheme": "exact",
            "namespace": "evm",
            "tokenAddress": self.token_address,
            "amountRequired": self.amount_decimal,
            "amountRequiredFormat": "humanReadable",
            "payToAddress": self.receiver_address,
            "networkId": self.network_id,
            "description": self.description,
            "tokenSymbol": self.token_symbol,
            "tokenDecimals": self.token_decimals,
            "maxTimeoutSeconds": self.max_timeout_seconds,
            "outputSchema": {
                "input": {"type": "http", "method": "GET", "discoverable": True},
            },
            "extra": {
                "name": self.token_name,
                "version": self.token_version,
            },
        }

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, str],
        *,
        create_auth_headers: Optional[AuthHeadersFactory] = None,
    ) -> "PaymentConfig":
        facilitator = FacilitatorConfig.from_mapping(
            values, create_auth_headers=create_auth_headers
        )

        raw_key = values.get("X402_PAYER_PRIVATE_KEY")
        if raw_key is None:
            raise ConfigError("X402_PAYER_PRIVATE_KEY must be provided")
        private_key = _normalize_private_key(raw_key)
        try:
            payer_account = Account.from_key(private_key)
        except ValueError as exc:
            raise ConfigError(f"X402_PAYER_PRIVATE_KEY is not a valid key: {exc}") from exc

        payer_address = _normalize_address(
            values.get("X402_PAYER_ADDRESS", payer_account.address), "X402_PAYER_ADDRESS"
        )

        receiver_raw = values.get("X402_RECEIVER_ADDRESS")
        if receiver_raw is None:
            raise ConfigError("X402_RECEIVER_ADDRESS must be provided")
        receiver_address = _normalize_address(receiver_raw, "X402_RECEIVER_ADDRESS")

        token_address = _normalize_address(
            values.get(
                "X402_PAYMENT_TOKEN_ADDRESS",
                "0xFD8578De9Bf1D6e4E387a02747B3d9F0E2B1757D",
            ),
            "X402_PAYMENT_TOKEN_ADDRESS",
        )

        amount_raw = values.get("X402_PAYMENT_AMOUNT", "0.0001")
        try:
            amount_decimal = Decimal(amount_raw)
        except InvalidOperation as exc:
            raise ConfigError(
                f"X402_PAYMENT_AMOUNT must be a valid decimal number, got '{amount_raw}'"
            ) from exc

        token_decimals = _int_setting(values, "X402_PAYMENT_TOKEN_DECIMALS", "18")
        amount_base_units = _to_base_units(amount_decimal, token_decimals)
        chain_id = _int_setting(values, "X402_PAYMENT_CHAIN_ID", "56")
        token_symbol = values.get("X402_PAYMENT_TOKEN_SYMBOL", "x402BNB")

        return cls(
            facilitator=facilitator,
            payer_private_key=private_key,
            payer_address=payer_address,
            receiver_address=receiver_address,
            token_address=token_address,
            amount_decimal=amount_decimal,
            amount_base_units=amount_base_units,
            token_decimals=token_decimals,
            max_timeout_seconds=_int_setting(values, "X402_PAYMENT_TIMEOUT_SECONDS", "600"),
            backdate_seconds=_int_setting(values, "X402_PAYMENT_BACKDATE_SECONDS", "600"),
            description=values.get(
                "X402_PAYMENT_DESCRIPTION", f"Payment of {amount_raw} {token_symbol}"
            ),
            token_symbol=token_symbol,
            token_name=values.get("X402_PAYMENT_TOKEN_NAME", "x402 Wrapped BNB"),
            token_version=values.get("X402_PAYMENT_TOKEN_VERSION", "1"),
            chain_id=chain_id,
            network_id=values.get("X402_PAYMENT_NETWORK_ID", str(chain_id)),
        )


def _resolve_settings(
    env_file: Optional[str],
    overrides: Optional[Mapping[str, str]],
    base: Optional[Mapping[str, str]],
    parameters: Optional[PaymentParameters],
) -> Mapping[str, str]:
    merged = dict(overrides or {})
    if parameters is not None:
        merged.update(parameters.as_overrides())
    return build_environment(env_file=env_file, base=base, overrides=merged).variables


def load_facilitator_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[PaymentParameters] = None,
    create_auth_headers: Optional[AuthHeadersFactory] = None,
) -> FacilitatorConfig:
    """Build a :class:`FacilitatorConfig`; only the ``X402_FACILITATOR_*`` settings are read."""
    values = _resolve_settings(env_file, overrides, base, parameters)
    return FacilitatorConfig.from_mapping(values, create_auth_headers=create_auth_headers)


def load_payment_config(
    *,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[PaymentParameters] = None,
    create_auth_headers: Optional[AuthHeadersFactory] = None,
) -> PaymentConfig:
    """
    Build a :class:`PaymentConfig` from the environment, a ``.env`` file and overrides.

    ``parameters`` wins over ``overrides``, which win over the file and ``base``.
    """
    values = _resolve_settings(env_file, overrides, base, parameters)
    return PaymentConfig.from_mapping(values, create_auth_headers=create_auth_headers)

"""
Public, high-level helpers for interacting with an x402 facilitator.
"""

from __future__ import annotations

from typing import Mapping, Optional

import requests

from .core.client import (
    FacilitatorClient,
    PaymentClient,
    SettlementResult,
    send_payment as _send_payment,
)
from .core.config import (
    AuthHeadersFactory,
    FacilitatorConfig,
    PaymentConfig,
    PaymentParameters,
    load_payment_config,
)

__all__ = [
    "create_facilitator_client",
    "create_payment_client",
    "send_payment",
]


def create_facilitator_client(
    url: Optional[str] = None,
    *,
    timeout_seconds: Optional[float] = None,
    create_auth_headers: Optional[AuthHeadersFactory] = None,
    session: Optional[requests.Session] = None,
) -> FacilitatorClient:
    """
    Construct a :class:`FacilitatorClient`; unset arguments keep the configuration defaults.
    """
    defaults = FacilitatorConfig()
    config = FacilitatorConfig(
        url=(url or defaults.url).rstrip("/"),
        timeout_seconds=defaults.timeout_seconds if timeout_seconds is None else timeout_seconds,
        create_auth_headers=create_auth_headers,
    )
    return FacilitatorClient(config, session=session)


def _resolve_config(
    config: Optional[PaymentConfig],
    env_file: Optional[str],
    overrides: Optional[Mapping[str, str]],
    base: Optional[Mapping[str, str]],
    parameters: Optional[PaymentParameters],
    create_auth_headers: Optional[AuthHeadersFactory],
) -> PaymentConfig:
    if config is None:
        return load_payment_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
            create_auth_headers=create_auth_headers,
        )
    extras = (overrides, base, parameters, create_auth_headers)
    if any(item is not None and item != {} for item in extras):
        raise ValueError(
            "Provide either a pre-built PaymentConfig or individual parameters, not both."
        )
    return config


def create_payment_client(
    *,
    config: Optional[PaymentConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[PaymentParameters] = None,
    create_auth_headers: Optional[AuthHeadersFactory] = None,
) -> PaymentClient:
    """
    Construct a :class:`PaymentClient`.

    Callers can either supply a ready-made :class:`PaymentConfig` or let the
    helper assemble one from environment data.
    """
    cfg = _resolve_config(config, env_file, overrides, base, parameters, create_auth_headers)
    return PaymentClient(cfg, session=session)


def send_payment(
    *,
    config: Optional[PaymentConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[PaymentParameters] = None,
    create_auth_headers: Optional[AuthHeadersFactory] = None,
    verify_only: bool = False,
) -> SettlementResult:
    """
    High-level convenience wrapper that handles verify + settle.
    """
    cfg = _resolve_config(config, env_file, overrides, base, parameters, create_auth_headers)
    return _send_payment(cfg, session=session, verify_only=verify_only)

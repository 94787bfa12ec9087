"""
HTTP client for the x402 facilitator ``/verify`` and ``/settle`` endpoints.
"""

from __future__ import annotations

import json
import logging
import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

import requests

from .codec import encode_payment_payload
from .config import FacilitatorConfig, PaymentConfig
from .errors import PaymentRejectedError, TransportError
from .payloads import build_payment_payload, create_payment_header
from .sanitize import to_json_safe

__all__ = [
    "FacilitatorClient",
    "PaymentClient",
    "SettlementResult",
    "VerificationResult",
    "build_curl_command",
    "send_payment",
]

PaymentInput = Union[str, Mapping[str, Any]]


@dataclass(frozen=True)
class VerificationResult:
    is_valid: bool
    error_message: Optional[str] = None
    payer: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "VerificationResult":
        return cls(
            is_valid=payload.get("isValid") is True,
            error_message=payload.get("errorMessage") or payload.get("invalidReason"),
            payer=payload.get("payer"),
            raw=payload,
        )

    @classmethod
    def rejected(cls, error_message: str) -> "VerificationResult":
        return cls(
            is_valid=False,
            error_message=error_message,
            raw={"isValid": False, "errorMessage": error_message},
        )


@dataclass(frozen=True)
class SettlementResult:
    success: bool
    network: Optional[str]
    transaction: Optional[str]
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Dict[str, Any]) -> "SettlementResult":
        return cls(
            success=bool(payload.get("success")),
            network=payload.get("network") or payload.get("networkId"),
            transaction=payload.get("transaction") or payload.get("txHash"),
            raw=payload,
        )


def build_curl_command(url: str, headers: Mapping[str, str], body: str) -> str:
    """Shell command reproducing a facilitator request, for manual debugging."""
    parts = ["curl", "-X", "POST"]
    for key, value in headers.items():
        parts.extend(["-H", f"{key}: {value}"])
    parts.extend(["-d", body, url])
    return " ".join(shlex.quote(part) for part in parts)


def _error_from_body(response: requests.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return None


class FacilitatorClient:
    """
    Talks to a single facilitator deployment.

    ``verify`` reports failures as a negative :class:`VerificationResult`;
    ``settle`` raises :class:`TransportError`.
    """

    def __init__(
        self,
        config: Optional[FacilitatorConfig] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config or FacilitatorConfig()
        self.session = session or requests.Session()

    @property
    def url(self) -> str:
        return self.config.url.rstrip("/")

    def _headers(self, endpoint: str) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.create_auth_headers is not None:
            auth_headers = self.config.create_auth_headers()
            headers.update(auth_headers.get(endpoint) or {})
        return headers

    def _body(self, payload: PaymentInput, payment_requirements: Any) -> str:
        encoded = payload if isinstance(payload, str) else encode_payment_payload(payload)
        return json.dumps(
            {
                "payload": encoded,
                "paymentRequirements": to_json_safe(payment_requirements),
            }
        )

    def _post(self, endpoint: str, body: str) -> requests.Response:
        url = f"{self.url}/{endpoint}"
        headers = self._headers(endpoint)
        logging.debug("Request body for %s: %s", url, body)
        logging.debug("Curl command for testing: %s", build_curl_command(url, headers, body))
        return self.session.post(
            url,
            data=body,
            headers=headers,
            timeout=self.config.timeout_seconds,
        )

    def verify(self, payload: PaymentInput, payment_requirements: Any) -> VerificationResult:
        """
        Ask the facilitator whether ``payload`` satisfies ``payment_requirements``.

        ``payload`` is either an encoded header or a payment payload mapping.
        """
        body = self._body(payload, payment_requirements)
        logging.info("Submitting payment for verification to %s/verify", self.url)
        try:
            response = self._post("verify", body)
        except requests.RequestException as exc:
            logging.warning("Verification request failed: %s", exc)
            return VerificationResult.rejected(f"Failed to verify payment: {exc}")

        if response.status_code != 200:
            message = _error_from_body(response) or f"Failed to verify payment: {response.reason}"
            logging.warning(
                "Facilitator rejected verification with %s: %s", response.status_code, message
            )
            return VerificationResult.rejected(message)

        try:
            data = response.json()
        except ValueError:
            return VerificationResult.rejected(
                f"Failed to verify payment: invalid JSON response: {response.text}"
            )
        if not isinstance(data, dict):
            return VerificationResult.rejected(
                f"Failed to verify payment: unexpected response: {data!r}"
            )
        return VerificationResult.from_response(data)

    def settle(self, payload: PaymentInput, payment_requirements: Any) -> SettlementResult:
        """Ask the facilitator to execute the transfer authorized by ``payload``."""
        body = self._body(payload, payment_requirements)
        logging.info("Submitting payment for settlement to %s/settle", self.url)
        try:
            response = self._post("settle", body)
        except requests.RequestException as exc:
            raise TransportError(f"Failed to settle payment: {exc}") from exc

        if response.status_code != 200:
            logging.debug("Settlement response body: %s", response.text)
            raise TransportError(
                f"Failed to settle payment: {response.status_code} {response.reason}",
                status_code=response.status_code,
                reason=response.reason,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Failed to parse settlement response: {response.text}",
                status_code=response.status_code,
                body=response.text,
            ) from exc
        if not isinstance(data, dict):
            raise TransportError(
                f"Unexpected settlement response: {data!r}",
                status_code=response.status_code,
                body=response.text,
            )
        return SettlementResult.from_response(data)


class PaymentClient:
    """
    Signs payments for a :class:`PaymentConfig` and pushes them through a facilitator.
    """

    def __init__(
        self,
        config: PaymentConfig,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config
        self.facilitator = FacilitatorClient(config.facilitator, session=session)

    def payment_requirements(self) -> Dict[str, Any]:
        return self.config.payment_requirements()

    def build_payment_payload(
        self,
        *,
        now: Optional[int] = None,
        nonce: Optional[bytes] = None,
    ) -> Dict[str, Any]:
        return build_payment_payload(self.config, now=now, nonce=nonce)

    def create_payment_header(
        self,
        *,
        now: Optional[int] = None,
        nonce: Optional[bytes] = None,
    ) -> str:
        return create_payment_header(self.config, now=now, nonce=nonce)

    def verify(self, header: str) -> VerificationResult:
        return self.facilitator.verify(header, self.payment_requirements())

    def settle(self, header: str) -> SettlementResult:
        return self.facilitator.settle(header, self.payment_requirements())

    def send(self, *, verify_only: bool = False) -> SettlementResult:
        header = self.create_payment_header()
        verification = self.verify(header)
        if not verification.is_valid:
            raise PaymentRejectedError(verification)

        logging.info("Facilitator accepted payment payload for payer %s", verification.payer)
        if verify_only:
            return SettlementResult(
                success=True,
                network=self.config.network_id,
                transaction=None,
                raw={"verifyOnly": True, "response": verification.raw},
            )

        return self.settle(header)


def send_payment(
    config: PaymentConfig,
    *,
    session: Optional[requests.Session] = None,
    verify_only: bool = False,
) -> SettlementResult:
    """Sign, verify and settle one payment for ``config``."""
    return PaymentClient(config, session=session).send(verify_only=verify_only)

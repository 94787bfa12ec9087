"""
Signing of ERC-3009 transfer authorizations and assembly of x402 payment payloads.
"""

from __future__ import annotations

import secrets
import time
from typing import Any, Dict, Optional

from eth_account import Account
from eth_account.messages import encode_typed_data
from hexbytes import HexBytes

from .codec import encode_payment_payload
from .config import PaymentConfig

__all__ = [
    "X402_VERSION",
    "authorization_typed_data",
    "build_authorization_payload",
    "build_payment_payload",
    "create_payment_header",
]

X402_VERSION = 1

_TRANSFER_WITH_AUTHORIZATION = [
    {"name": "from", "type": "address"},
    {"name": "to", "type": "address"},
    {"name": "value", "type": "uint256"},
    {"name": "validAfter", "type": "uint256"},
    {"name": "validBefore", "type": "uint256"},
    {"name": "nonce", "type": "bytes32"},
]

_EIP712_DOMAIN = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]


def authorization_typed_data(
    config: PaymentConfig,
    authorization: Dict[str, Any],
) -> Dict[str, Any]:
    """EIP-712 document signed for ``authorization`` under the token's domain."""
    return {
        "types": {
            "EIP712Domain": _EIP712_DOMAIN,
            "TransferWithAuthorization": _TRANSFER_WITH_AUTHORIZATION,
        },
        "primaryType": "TransferWithAuthorization",
        "domain": {
            "name": config.token_name,
            "version": authorization["version"],
            "chainId": config.chain_id,
            "verifyingContract": config.token_address,
        },
        "message": {
            "from": authorization["from"],
            "to": authorization["to"],
            "value": authorization["value"],
            "validAfter": authorization["validAfter"],
            "validBefore": authorization["validBefore"],
            "nonce": HexBytes(authorization["nonce"]),
        },
    }


def build_authorization_payload(
    config: PaymentConfig,
    *,
    now: Optional[int] = None,
    nonce: Optional[bytes] = None,
) -> Dict[str, Any]:
    """
    Sign a TransferWithAuthorization for the configured amount and receiver.

    Amounts and the validity window are returned as ``int``; they only become
    strings when the payload is encoded.
    """
    now = int(time.time()) if now is None else now
    nonce_bytes = nonce if nonce is not None else secrets.token_bytes(32)
    if len(nonce_bytes) != 32:
        raise ValueError("Authorization nonce must be exactly 32 bytes")

    authorization = {
        "from": config.payer_address,
        "to": config.receiver_address,
        "value": config.amount_base_units,
        "validAfter": now - config.backdate_seconds,
        "validBefore": now + config.max_timeout_seconds,
        "nonce": "0x" + nonce_bytes.hex(),
        "version": config.token_version,
    }

    account = Account.from_key(config.payer_private_key)
    signable = encode_typed_data(full_message=authorization_typed_data(config, authorization))
    signature = account.sign_message(signable).signature

    return {
        "type": "authorizationEip3009",
        "signature": "0x" + bytes(signature).hex(),
        "authorization": authorization,
    }


def build_payment_payload(
    config: PaymentConfig,
    *,
    now: Optional[int] = None,
    nonce: Optional[bytes] = None,
) -> Dict[str, Any]:
    """Build the payment payload handed to the codec."""
    return {
        "x402Version": X402_VERSION,
        "scheme": "exact",
        "namespace": "evm",
        "networkId": config.network_id,
        "payload": build_authorization_payload(config, now=now, nonce=nonce),
    }


def create_payment_header(
    config: PaymentConfig,
    *,
    now: Optional[int] = None,
    nonce: Optional[bytes] = None,
) -> str:
    """Sign and encode a payment payload, ready for an ``X-PAYMENT`` header."""
    return encode_payment_payload(build_payment_payload(config, now=now, nonce=nonce))

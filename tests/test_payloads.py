from eth_account import Account
from eth_account.messages import encode_typed_data

from x402_facilitator.core.codec import decode_payment_payload
from x402_facilitator.core.payloads import (
    authorization_typed_data,
    build_authorization_payload,
    build_payment_payload,
    create_payment_header,
)

NOW = 1_700_000_000
NONCE = bytes(range(32))


def test_authorization_fields(payment_config) -> None:
    payload = build_authorization_payload(payment_config, now=NOW, nonce=NONCE)

    assert payload["type"] == "authorizationEip3009"
    assert payload["signature"].startswith("0x")
    assert len(payload["signature"]) == 2 + 65 * 2
    authorization = payload["authorization"]
    assert authorization["value"] == payment_config.amount_base_units
    assert authorization["validAfter"] == NOW - payment_config.backdate_seconds
    assert authorization["validBefore"] == NOW + payment_config.max_timeout_seconds
    assert authorization["nonce"] == "0x" + NONCE.hex()
    assert authorization["version"] == "1"


def test_signature_recovers_payer(payment_config) -> None:
    payload = build_authorization_payload(payment_config, now=NOW, nonce=NONCE)

    signable = encode_typed_data(
        full_message=authorization_typed_data(payment_config, payload["authorization"])
    )
    signer = Account.recover_message(signable, signature=payload["signature"])

    assert signer == payment_config.payer_address


def test_signing_is_deterministic_for_fixed_inputs(payment_config) -> None:
    first = build_payment_payload(payment_config, now=NOW, nonce=NONCE)
    second = build_payment_payload(payment_config, now=NOW, nonce=NONCE)

    assert first == second
    assert first["networkId"] == "56"
    assert first["x402Version"] == 1


def test_random_nonces_differ(payment_config) -> None:
    first = build_authorization_payload(payment_config, now=NOW)
    second = build_authorization_payload(payment_config, now=NOW)

    assert first["authorization"]["nonce"] != second["authorization"]["nonce"]


def test_header_decodes_to_signed_payload(payment_config) -> None:
    header = create_payment_header(payment_config, now=NOW, nonce=NONCE)

    assert decode_payment_payload(header) == build_payment_payload(
        payment_config, now=NOW, nonce=NONCE
    )

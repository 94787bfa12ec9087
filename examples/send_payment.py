"""
Smoke test: sign an x402BNB payment, verify it and settle it on BSC.

Reads X402_* settings (at least X402_PAYER_PRIVATE_KEY and
X402_RECEIVER_ADDRESS) from the environment or a .env file.
"""

from __future__ import annotations

import argparse
import logging
import sys

from x402_facilitator import (
    ConfigError,
    PaymentParameters,
    create_payment_client,
    decode_payment_payload,
    load_payment_config,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send an x402 payment using the SDK API")
    parser.add_argument("--env-file", default=".env", help="Path to the .env file")
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    parser.add_argument(
        "--verify-only",
        action="store_true",
        help="Stop after facilitator verification (no on-chain settlement)",
    )
    parser.add_argument("--facilitator-url", help="Override the facilitator base URL")
    parser.add_argument("--amount", help="Override the payment amount in token units")
    parser.add_argument("--receiver-address", help="Override the receiving address")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    parameters = PaymentParameters(
        facilitator_url=args.facilitator_url,
        amount=args.amount,
        receiver_address=args.receiver_address,
    )
    try:
        config = load_payment_config(env_file=args.env_file, parameters=parameters)
    except (KeyError, ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = create_payment_client(config=config)
    requirements = client.payment_requirements()
    header = client.create_payment_header()
    logging.info("Payment payload: %s", decode_payment_payload(header))

    verification = client.verify(header)
    if not verification.is_valid:
        logging.error("Failed to verify payment on facilitator: %s", verification.error_message)
        return 1
    logging.info("Verify response: %s", verification.raw)

    if args.verify_only:
        logging.info("Verification succeeded; skipping settlement.")
        return 0

    try:
        settlement = client.facilitator.settle(header, requirements)
    except Exception as exc:  # noqa: BLE001
        logging.error("Settlement request failed: %s", exc)
        return 1

    logging.info("Settle response: %s", settlement.raw)
    return 0 if settlement.success else 1


if __name__ == "__main__":
    sys.exit(main())

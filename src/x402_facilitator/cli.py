"""
Command-line interface for exercising the facilitator and inspecting payment headers.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Iterable, Optional, Sequence, TextIO, Tuple

import requests

from .api import create_payment_client
from .core.client import SettlementResult
from .core.codec import decode_payment_payload
from .core.config import ConfigError, load_payment_config
from .core.errors import PayloadDecodeError, PaymentRejectedError, TransportError
from .core.sanitize import to_json_safe


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _env_override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _collect_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    return {key: value for key, value in pairs}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="x402-facilitator",
        description="Verify and settle x402 payments against a facilitator",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    pay = commands.add_parser("pay", help="Sign one payment, verify it and settle it")
    pay.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing X402_* settings (default: .env)",
    )
    pay.add_argument(
        "--set",
        action="append",
        type=_env_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    pay.add_argument(
        "--verify-only",
        action="store_true",
        help="Submit the payload to /verify but skip settlement",
    )

    decode = commands.add_parser("decode", help="Decode and validate an encoded payment header")
    decode.add_argument("header", help="Base64 payment payload, e.g. an X-PAYMENT header value")
    return parser


def _run_pay(args: argparse.Namespace) -> int:
    overrides = _collect_overrides(args.set or ())
    try:
        config = load_payment_config(env_file=args.env_file, overrides=overrides)
    except (KeyError, ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    client = create_payment_client(config=config, session=requests.Session())
    logging.info("Sending payment through %s", config.facilitator_url)
    try:
        settlement = client.send(verify_only=args.verify_only)
    except PaymentRejectedError as exc:
        logging.error("%s", exc)
        return 1
    except TransportError as exc:
        logging.error("Settlement request failed: %s", exc)
        return 1

    if args.verify_only:
        logging.info("Skipping settlement because --verify-only was requested")
        return 0
    return _handle_settlement(settlement)


def _handle_settlement(settlement: SettlementResult) -> int:
    if not settlement.success:
        logging.error("Settlement failed: %s", settlement.raw)
        return 1

    logging.info(
        "Payment settled on %s. Transaction hash: %s",
        settlement.network,
        settlement.transaction,
    )
    return 0


def _run_decode(args: argparse.Namespace, out: TextIO) -> int:
    try:
        payment = decode_payment_payload(args.header)
    except PayloadDecodeError as exc:
        logging.error("Invalid payment header: %s", exc)
        return 1
    json.dump(to_json_safe(payment), out, indent=2)
    out.write("\n")
    return 0


def run_cli(argv: Sequence[str] | None = None, *, out: Optional[TextIO] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    if args.command == "decode":
        return _run_decode(args, out or sys.stdout)
    return _run_pay(args)


def main() -> None:
    sys.exit(run_cli())

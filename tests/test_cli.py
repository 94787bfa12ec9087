import base64
import io
import json
from pathlib import Path

from x402_facilitator.cli import run_cli
from x402_facilitator.core.codec import encode_payment_payload


def test_decode_prints_sanitized_payload(authorization_payment) -> None:
    out = io.StringIO()

    code = run_cli(["decode", encode_payment_payload(authorization_payment)], out=out)

    assert code == 0
    printed = json.loads(out.getvalue())
    assert printed["payload"]["authorization"]["value"] == str(2**200)
    assert printed["payload"]["authorization"]["validAfter"] == 1_700_000_000


def test_decode_rejects_invalid_header() -> None:
    out = io.StringIO()

    assert run_cli(["decode", "bm90IGpzb24="], out=out) == 1
    assert out.getvalue() == ""


def test_decode_rejects_oversized_amount(authorization_payment) -> None:
    document = json.loads(base64.b64decode(encode_payment_payload(authorization_payment)))
    document["payload"]["authorization"]["value"] = "9" * 5000
    header = base64.b64encode(json.dumps(document).encode("utf-8")).decode("ascii")
    out = io.StringIO()

    assert run_cli(["decode", header], out=out) == 1
    assert out.getvalue() == ""


def test_pay_fails_on_invalid_configuration(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("X402_RECEIVER_ADDRESS=0x0\n", encoding="utf-8")

    code = run_cli(
        [
            "pay",
            "--env-file",
            str(env_file),
            "--set",
            "X402_PAYER_PRIVATE_KEY=0x1234",
        ]
    )

    assert code == 1

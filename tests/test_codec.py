import base64
import copy
import json
import sys
import threading

import pytest

from x402_facilitator.core.codec import (
    decode_payment_payload,
    encode_payment_payload,
    validate_payment_payload,
)
from x402_facilitator.core.errors import (
    AuthorizationError,
    PayloadDecodeError,
    PayloadEncodeError,
    StructureError,
    UnknownPayloadTypeError,
)


def _wire(payment):
    return json.loads(base64.b64decode(encode_payment_payload(payment)))


def _encode_raw(document) -> str:
    return base64.b64encode(json.dumps(document).encode("utf-8")).decode("ascii")


def test_round_trip_preserves_large_integers(authorization_payment) -> None:
    decoded = decode_payment_payload(encode_payment_payload(authorization_payment))

    assert decoded == authorization_payment
    assert decoded["payload"]["authorization"]["value"] == 2**200


def test_round_trip_eip3009_variant(authorization_payment) -> None:
    authorization_payment["payload"]["type"] = "authorizationEip3009"
    authorization_payment["payload"]["authorization"]["value"] = 2**256 - 1

    decoded = decode_payment_payload(encode_payment_payload(authorization_payment))

    assert decoded == authorization_payment


def test_encode_writes_numeric_fields_as_decimal_strings(authorization_payment) -> None:
    authorization = _wire(authorization_payment)["payload"]["authorization"]

    assert authorization["value"] == str(2**200)
    assert authorization["validAfter"] == "1700000000"
    assert authorization["validBefore"] == "1700000600"
    assert authorization["nonce"] == "0x" + "01" * 32
    assert authorization["from"] == authorization_payment["payload"]["authorization"]["from"]


def test_encode_does_not_mutate_input(authorization_payment) -> None:
    snapshot = copy.deepcopy(authorization_payment)

    encode_payment_payload(authorization_payment)

    assert authorization_payment == snapshot
    assert isinstance(authorization_payment["payload"]["authorization"]["value"], int)


def test_encode_leaves_unknown_variants_untouched() -> None:
    payment = {"x402Version": 1, "payload": {"type": "foo", "amount": 5}}

    assert _wire(payment) == payment


def test_encode_rejects_unserializable_values(authorization_payment) -> None:
    authorization_payment["extra"] = object()

    with pytest.raises(PayloadEncodeError):
        encode_payment_payload(authorization_payment)


def test_decode_rejects_non_decimal_amount(authorization_payment) -> None:
    document = _wire(authorization_payment)
    document["payload"]["authorization"]["value"] = "12abc"

    with pytest.raises(AuthorizationError) as excinfo:
        decode_payment_payload(_encode_raw(document))

    assert excinfo.value.fields == ("authorization.value",)


def test_decode_reports_bad_amount_together_with_other_fields(authorization_payment) -> None:
    document = _wire(authorization_payment)
    document["payload"]["authorization"]["value"] = "abc"
    document["payload"]["signature"] = "zz"

    with pytest.raises(AuthorizationError) as excinfo:
        decode_payment_payload(_encode_raw(document))

    assert set(excinfo.value.fields) == {"authorization.value", "signature"}


@pytest.mark.parametrize("raw", ["9" * 5000, "9" * 79, str(2**256), 2**256, -5])
def test_decode_rejects_amounts_outside_uint256(authorization_payment, raw) -> None:
    document = _wire(authorization_payment)
    document["payload"]["authorization"]["validBefore"] = raw

    with pytest.raises(AuthorizationError) as excinfo:
        decode_payment_payload(_encode_raw(document))

    assert excinfo.value.fields == ("authorization.validBefore",)


def test_decode_accepts_uint256_maximum(authorization_payment) -> None:
    authorization_payment["payload"]["authorization"]["value"] = 2**256 - 1

    decoded = decode_payment_payload(encode_payment_payload(authorization_payment))

    assert decoded["payload"]["authorization"]["value"] == 2**256 - 1


@pytest.mark.skipif(
    not hasattr(sys, "get_int_max_str_digits"), reason="no integer string conversion limit"
)
def test_encode_rejects_integers_too_long_to_print(authorization_payment) -> None:
    authorization_payment["payload"]["authorization"]["value"] = 10**5000

    with pytest.raises(PayloadEncodeError):
        encode_payment_payload(authorization_payment)


def test_encode_rejects_uncopyable_values(authorization_payment) -> None:
    authorization_payment["lock"] = threading.Lock()

    with pytest.raises(PayloadEncodeError):
        encode_payment_payload(authorization_payment)


@pytest.mark.parametrize("raw", ["", " 5", "-1", "1.5", "1_000", 1.5, True])
def test_decode_never_coerces_invalid_numbers(authorization_payment, raw) -> None:
    document = _wire(authorization_payment)
    document["payload"]["authorization"]["validAfter"] = raw

    with pytest.raises(AuthorizationError):
        decode_payment_payload(_encode_raw(document))


def test_decode_accepts_json_integers(authorization_payment) -> None:
    document = _wire(authorization_payment)
    document["payload"]["authorization"]["validBefore"] = 1_700_000_600

    decoded = decode_payment_payload(_encode_raw(document))

    assert decoded["payload"]["authorization"]["validBefore"] == 1_700_000_600


def test_decode_rejects_signature_without_prefix(authorization_payment) -> None:
    authorization_payment["payload"]["signature"] = "ab" * 65

    with pytest.raises(AuthorizationError) as excinfo:
        decode_payment_payload(encode_payment_payload(authorization_payment))

    assert "signature" in excinfo.value.fields


def test_decode_reports_every_invalid_field(authorization_payment) -> None:
    authorization = authorization_payment["payload"]["authorization"]
    authorization["nonce"] = 7
    authorization["version"] = None
    authorization_payment["payload"]["signature"] = None

    with pytest.raises(AuthorizationError) as excinfo:
        decode_payment_payload(encode_payment_payload(authorization_payment))

    assert set(excinfo.value.fields) == {
        "authorization.nonce",
        "authorization.version",
        "signature",
    }


@pytest.mark.parametrize(
    "document",
    [
        [],
        "payload",
        {"x402Version": 1},
        {"payload": "not an object"},
        {"payload": {"authorization": {}}},
        {"payload": {"type": ""}},
    ],
)
def test_decode_rejects_malformed_structure(document) -> None:
    with pytest.raises(StructureError):
        decode_payment_payload(_encode_raw(document))


def test_decode_rejects_unknown_payload_type() -> None:
    with pytest.raises(UnknownPayloadTypeError) as excinfo:
        decode_payment_payload(_encode_raw({"payload": {"type": "foo"}}))

    assert excinfo.value.payload_type == "foo"


@pytest.mark.parametrize(
    "encoded",
    [
        "not base64!",
        base64.b64encode(b"{not json").decode("ascii"),
        base64.b64encode(b"\xff\xfe").decode("ascii"),
    ],
)
def test_decode_rejects_garbage(encoded) -> None:
    with pytest.raises(PayloadDecodeError):
        decode_payment_payload(encoded)


def test_validate_returns_same_object(authorization_payment) -> None:
    assert validate_payment_payload(authorization_payment) is authorization_payment


def test_validate_rejects_string_amounts(authorization_payment) -> None:
    authorization_payment["payload"]["authorization"]["value"] = "100"

    with pytest.raises(AuthorizationError) as excinfo:
        validate_payment_payload(authorization_payment)

    assert excinfo.value.fields == ("authorization.value",)


def test_validate_rejects_float_amounts(authorization_payment) -> None:
    authorization_payment["payload"]["authorization"]["validBefore"] = 1.0e9

    with pytest.raises(AuthorizationError):
        validate_payment_payload(authorization_payment)


def test_validate_requires_authorization_object(authorization_payment) -> None:
    del authorization_payment["payload"]["authorization"]

    with pytest.raises(AuthorizationError) as excinfo:
        validate_payment_payload(authorization_payment)

    assert excinfo.value.fields == ("authorization",)


def test_validate_rejects_non_mapping() -> None:
    with pytest.raises(StructureError):
        validate_payment_payload(None)

import json
from typing import Any, Dict, List, Optional

import pytest

from x402_facilitator.core.config import PaymentConfig

# Well-known development key (Hardhat/Anvil account #0).
PAYER_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
PAYER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
RECEIVER_ADDRESS = "0x14276b249fc7c640ee2406f28ef9f26e1069b5e8"


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        body: Any = None,
        *,
        text: Optional[str] = None,
        reason: str = "OK",
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self._body = body
        self.text = text if text is not None else json.dumps(body)

    def json(self) -> Any:
        return json.loads(self.text)


class FakeSession:
    """Stands in for ``requests.Session``; replays queued responses."""

    def __init__(self, *responses: Any) -> None:
        self.responses: List[Any] = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def sent_json(self, index: int = -1) -> Dict[str, Any]:
        return json.loads(self.calls[index]["data"])


@pytest.fixture
def settings() -> Dict[str, str]:
    return {
        "X402_PAYER_PRIVATE_KEY": PAYER_PRIVATE_KEY,
        "X402_RECEIVER_ADDRESS": RECEIVER_ADDRESS,
        "X402_FACILITATOR_URL": "https://facilitator.test/",
    }


@pytest.fixture
def payment_config(settings: Dict[str, str]) -> PaymentConfig:
    return PaymentConfig.from_mapping(settings)


@pytest.fixture
def authorization_payment() -> Dict[str, Any]:
    return {
        "x402Version": 1,
        "scheme": "exact",
        "networkId": "56",
        "payload": {
            "type": "authorization",
            "signature": "0x" + "ab" * 65,
            "authorization": {
                "from": PAYER_ADDRESS,
                "to": RECEIVER_ADDRESS,
                "value": 2**200,
                "validAfter": 1_700_000_000,
                "validBefore": 1_700_000_600,
                "nonce": "0x" + "01" * 32,
                "version": "1",
            },
        },
    }

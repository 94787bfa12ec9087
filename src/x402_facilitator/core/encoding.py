"""Base64 helpers used for x402 header values."""

from __future__ import annotations

import base64

__all__ = ["safe_base64_decode", "safe_base64_encode"]


def safe_base64_encode(data: str) -> str:
    """Base64 encode UTF-8 text."""
    return base64.b64encode(data.encode("utf-8")).decode("ascii")


def safe_base64_decode(data: str) -> str:
    """Decode base64 back into UTF-8 text; malformed input raises ``ValueError``."""
    return base64.b64decode(data.encode("ascii"), validate=True).decode("utf-8")

"""
Resolution of ``X402_*`` settings from the process environment and ``.env`` files.

Precedence, highest first: explicit overrides, the base mapping
(``os.environ`` unless given), then the ``.env`` file. A ``.env`` file only
fills in settings the environment does not already define.
"""

from __future__ import annotations

import os
from collections import ChainMap
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, MutableMapping, Optional, Tuple

__all__ = ["SettingsEnvironment", "build_environment", "load_env_file", "read_env_file"]

_QUOTES = ("'", '"')


def _parse_line(line: str) -> Optional[Tuple[str, str]]:
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    line = line.removeprefix("export ").lstrip()
    name, sep, value = line.partition("=")
    name = name.strip()
    if not sep or not name:
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
        value = value[1:-1]
    return name, value


def _iter_settings(text: str) -> Iterator[Tuple[str, str]]:
    for line in text.splitlines():
        parsed = _parse_line(line)
        if parsed is not None:
            yield parsed


def read_env_file(path: str | Path) -> Dict[str, str]:
    """Settings defined in ``path``; a missing file yields an empty dict."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    return dict(_iter_settings(text))


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Copy settings from ``path`` into ``environ`` (``os.environ`` by default).

    Keys already present are left alone. Returns a snapshot of the result.
    """
    target: MutableMapping[str, str] = os.environ if environ is None else environ
    for name, value in read_env_file(path).items():
        target.setdefault(name, value)
    return dict(target)


@dataclass(frozen=True)
class SettingsEnvironment:
    variables: Mapping[str, str]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> SettingsEnvironment:
    """Layer ``overrides`` over ``base`` over ``env_file``; ``env_file=None`` skips the file."""
    layers = ChainMap(
        dict(overrides or {}),
        dict(os.environ if base is None else base),
        read_env_file(env_file) if env_file is not None else {},
    )
    return SettingsEnvironment(variables=dict(layers))

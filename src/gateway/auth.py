"""Credential extraction from the Authorization header."""

from __future__ import annotations

from typing import Optional


TOKEN_PREFIXES = ("DeepL-Auth-Key ", "Bearer ")


def extract_token(header_value: Optional[str]) -> str:
    """Strip a known auth scheme prefix; anything else passes through unchanged."""

    if not header_value:
        return ""
    for prefix in TOKEN_PREFIXES:
        if header_value.startswith(prefix):
            return header_value[len(prefix):]
    return header_value


def mask_token(token: str, visible: int = 4) -> str:
    """Return a log-safe rendition of a credential."""

    if not token:
        return ""
    return f"{token[:visible]}***"

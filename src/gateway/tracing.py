"""Debug trace helpers for request/response bodies and headers."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from .auth import extract_token, mask_token


def format_json(data: Any) -> str:
    """Render a payload as indented JSON, falling back to the raw text."""

    if isinstance(data, (bytes, bytearray)):
        data = data.decode("utf-8", errors="replace")
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError:
            return data
    try:
        return json.dumps(data, indent=2, ensure_ascii=False)
    except TypeError:
        return str(data)


def log_headers(logger: logging.Logger, request_id: str, headers: Iterable[tuple[str, str]]) -> None:
    """Trace inbound headers with the credential masked."""

    logger.debug("[%s] request headers:", request_id)
    for key, value in headers:
        if key.lower() == "authorization":
            token = extract_token(value)
            value = value[: len(value) - len(token)] + mask_token(token)
        logger.debug("  %s: %s", key, value)

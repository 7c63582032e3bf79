"""Unit tests for credential extraction."""

from __future__ import annotations

import logging

import pytest

from src.gateway.auth import extract_token, mask_token
from src.gateway.tracing import format_json, log_headers


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        ("DeepL-Auth-Key abc123", "abc123"),
        ("Bearer xyz", "xyz"),
        ("plainvalue", "plainvalue"),
        ("", ""),
        (None, ""),
    ],
)
def test_extract_token(header, expected):
    assert extract_token(header) == expected


def test_extract_token_prefix_is_case_sensitive():
    assert extract_token("bearer xyz") == "bearer xyz"


def test_mask_token():
    assert mask_token("abcdef123") == "abcd***"
    assert mask_token("") == ""


def test_log_headers_masks_authorization(caplog):
    logger = logging.getLogger("gateway.test")
    with caplog.at_level(logging.DEBUG, logger="gateway.test"):
        log_headers(logger, "req", [("Authorization", "Bearer supersecret"), ("Accept", "*/*")])
    assert "supersecret" not in caplog.text
    assert "Bearer supe***" in caplog.text
    assert "Accept: */*" in caplog.text


def test_format_json_indents_and_falls_back():
    assert format_json(b'{"a": 1}') == '{\n  "a": 1\n}'
    assert format_json("not json") == "not json"

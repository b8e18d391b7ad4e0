#!/usr/bin/env python3
"""
Tests for the Whisk credential store.

A missing, malformed or nearly expired token must yield None, never raise.
"""

import json
import os
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from ai_pptx.models.generation import Credential
from ai_pptx.utils.token_store import FileCredentialProvider, StaticCredentialProvider


def _now_ms() -> int:
    return int(time.time() * 1000)


def _write_token(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_missing_file_returns_none(tmp_path):
    """No token file means no credential."""
    provider = FileCredentialProvider(token_file=tmp_path / "missing.json")
    assert provider.load_credential() is None


def test_malformed_json_returns_none(tmp_path):
    token_file = tmp_path / "token.json"
    token_file.write_text("{not json", encoding="utf-8")

    assert FileCredentialProvider(token_file=token_file).load_credential() is None


def test_non_object_json_returns_none(tmp_path):
    token_file = _write_token(tmp_path / "token.json", ["accessToken", "expiresAt"])
    assert FileCredentialProvider(token_file=token_file).load_credential() is None


def test_missing_fields_return_none(tmp_path):
    """Both accessToken and expiresAt are required."""
    only_token = _write_token(tmp_path / "a.json", {"accessToken": "abc"})
    only_expiry = _write_token(tmp_path / "b.json", {"expiresAt": _now_ms() + 3_600_000})
    empty_token = _write_token(tmp_path / "c.json", {"accessToken": "", "expiresAt": _now_ms() + 3_600_000})

    for token_file in (only_token, only_expiry, empty_token):
        assert FileCredentialProvider(token_file=token_file).load_credential() is None, token_file.name


def test_expiring_within_buffer_returns_none(tmp_path):
    """A token expiring in 4 minutes is unusable with the default 5 minute buffer."""
    token_file = _write_token(
        tmp_path / "token.json",
        {"accessToken": "abc", "expiresAt": _now_ms() + 4 * 60 * 1000}
    )
    assert FileCredentialProvider(token_file=token_file, expiry_buffer_seconds=300).load_credential() is None


def test_already_expired_returns_none(tmp_path):
    token_file = _write_token(tmp_path / "token.json", {"accessToken": "abc", "expiresAt": _now_ms() - 1000})
    assert FileCredentialProvider(token_file=token_file, expiry_buffer_seconds=0).load_credential() is None


def test_valid_token_is_returned(tmp_path):
    expires_at = _now_ms() + 60 * 60 * 1000
    token_file = _write_token(
        tmp_path / "token.json",
        {"accessToken": "ya29.test", "expiresAt": expires_at, "refreshToken": "ignored"}
    )

    credential = FileCredentialProvider(token_file=token_file, expiry_buffer_seconds=300).load_credential()

    assert credential is not None
    assert credential.access_token == "ya29.test"
    assert credential.expires_at == expires_at
    assert 58 <= credential.minutes_remaining() <= 60


def test_token_file_is_never_rewritten(tmp_path):
    token_file = _write_token(tmp_path / "token.json", {"accessToken": "abc", "expiresAt": _now_ms() - 1000})
    before = token_file.read_text(encoding="utf-8")

    FileCredentialProvider(token_file=token_file).load_credential()

    assert token_file.read_text(encoding="utf-8") == before


def test_credential_expiry_helpers():
    credential = Credential(access_token="abc", expires_at=1_000_000)

    assert credential.expires_within(0, now_ms=1_000_001)
    assert not credential.expires_within(100, now_ms=800_000)
    assert credential.expires_within(300, now_ms=800_000)
    assert credential.minutes_remaining(now_ms=1_000_001) == 0


def test_static_provider():
    credential = Credential(accessToken="abc", expiresAt=_now_ms() + 3_600_000)

    assert StaticCredentialProvider(credential).load_credential() is credential
    assert StaticCredentialProvider(None).load_credential() is None

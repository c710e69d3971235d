from __future__ import annotations

from datetime import timedelta

import pytest

from training_portal.core.config import settings
from training_portal.core.security import (
    employee_feedback_scope,
    generate_secure_token,
    manager_feedback_scope,
    nomination_scope,
    sanitize_input,
    verify_secure_token,
)


def test_token_round_trip_for_same_scope():
    token = generate_secure_token(nomination_scope("n-1"))
    assert verify_secure_token(token, nomination_scope("n-1"))


def test_token_has_signature_and_expiry():
    signature, _, expires = generate_secure_token("data").partition(".")
    assert len(signature) == 64
    assert expires.isdigit()


def test_token_rejected_for_other_record():
    token = generate_secure_token(nomination_scope("n-1"))
    assert not verify_secure_token(token, nomination_scope("n-2"))


def test_employee_token_cannot_be_used_as_manager_token():
    token = generate_secure_token(employee_feedback_scope("e-1"))
    assert not verify_secure_token(token, manager_feedback_scope("e-1"))


def test_expired_token_rejected():
    token = generate_secure_token("data", ttl=timedelta(seconds=-1))
    assert not verify_secure_token(token, "data")


def test_tampered_expiry_rejected():
    token = generate_secure_token("data", ttl=timedelta(minutes=5))
    signature, _, expires = token.partition(".")
    forged = f"{signature}.{int(expires) + 86_400_000}"
    assert not verify_secure_token(forged, "data")


@pytest.mark.parametrize("token", [None, "", "nodot", "zz.123", "abc.notanumber", "abc."])
def test_malformed_tokens_rejected(token):
    assert not verify_secure_token(token, "data")


def test_missing_data_rejected():
    token = generate_secure_token("data")
    assert not verify_secure_token(token, None)


def test_generation_requires_secret(monkeypatch):
    monkeypatch.setattr(settings, "auth_secret", None)
    with pytest.raises(RuntimeError, match="AUTH_SECRET"):
        generate_secure_token("data")


def test_verification_fails_without_secret(monkeypatch):
    token = generate_secure_token("data")
    monkeypatch.setattr(settings, "auth_secret", None)
    assert not verify_secure_token(token, "data")


def test_signature_depends_on_secret(monkeypatch):
    token = generate_secure_token("data")
    monkeypatch.setattr(settings, "auth_secret", "another-secret")
    assert not verify_secure_token(token, "data")


def test_scopes_are_prefixed():
    assert nomination_scope("1") == "nomination:1"
    assert employee_feedback_scope("1") == "feedback:employee:1"
    assert manager_feedback_scope("1") == "feedback:manager:1"


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, ""),
        ("", ""),
        ("  plain  ", "plain"),
        ("<b>bold</b> text", "bold text"),
        ("<script>alert(1)</script>Hi", "alert(1)Hi"),
    ],
)
def test_sanitize_input(raw, expected):
    assert sanitize_input(raw) == expected

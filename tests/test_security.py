# Password hashing and access token helpers.

import jwt
import pytest

from portfolio_api.auth import security
from portfolio_api.auth.dependencies import _extract_bearer_token
from portfolio_api.core.errors import Unauthenticated

SECRET = "unit-test-secret-key-0123456789abcdef"


def test_hash_and_verify_password():
    hashed = security.hash_password("hunter22")
    assert hashed.startswith("$2")
    assert security.verify_password("hunter22", hashed)
    assert not security.verify_password("hunter23", hashed)


def test_hash_empty_password_rejected():
    with pytest.raises(security.AuthSecurityError):
        security.hash_password("")


def test_verify_password_with_garbage_hash():
    assert not security.verify_password("hunter22", "not-a-bcrypt-hash")
    assert not security.verify_password("hunter22", "")
    assert not security.verify_password("", "$2b$04$abcdefghijklmnopqrstuu")


def test_token_round_trip_carries_username():
    token = security.build_access_token(username="shepard", secret=SECRET, expire_minutes=5)
    payload = security.decode_access_token(token, secret=SECRET)
    assert payload["sub"] == "shepard"
    assert payload["type"] == "access"
    assert payload["exp"] - payload["iat"] == 300


def test_token_signed_with_other_key_rejected():
    token = security.build_access_token(username="shepard", secret=SECRET)
    with pytest.raises(security.AuthSecurityError):
        security.decode_access_token(token, secret=SECRET + "-other")


def test_tampered_token_rejected():
    token = security.build_access_token(username="shepard", secret=SECRET)
    header, _, signature = token.split(".")
    forged = jwt.encode(
        {"sub": "admin", "type": "access", "exp": 9999999999},
        "guessed-secret-guessed-secret-0123",
        algorithm="HS256",
    )
    tampered = ".".join([header, forged.split(".")[1], signature])
    with pytest.raises(security.AuthSecurityError):
        security.decode_access_token(tampered, secret=SECRET)


def test_expired_token_rejected():
    issued = security.now_epoch_s() - 3600
    token = security.build_access_token(username="shepard", secret=SECRET, expire_minutes=1, issued_at=issued)
    with pytest.raises(security.AuthSecurityError, match="expired"):
        security.decode_access_token(token, secret=SECRET)


def test_token_of_other_type_rejected():
    token = jwt.encode(
        {"sub": "shepard", "type": "refresh", "exp": security.now_epoch_s() + 60},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(security.AuthSecurityError, match="not an access token"):
        security.decode_access_token(token, secret=SECRET)


def test_token_without_subject_rejected():
    token = jwt.encode({"type": "access", "exp": security.now_epoch_s() + 60}, SECRET, algorithm="HS256")
    with pytest.raises(security.AuthSecurityError):
        security.decode_access_token(token, secret=SECRET)


@pytest.mark.parametrize("raw", ["", "   ", "not.a.jwt"])
def test_malformed_token_rejected(raw):
    with pytest.raises(security.AuthSecurityError):
        security.decode_access_token(raw, secret=SECRET)


def test_extract_bearer_token():
    assert _extract_bearer_token("Bearer abc.def") == "abc.def"
    assert _extract_bearer_token("bearer   abc.def  ") == "abc.def"


@pytest.mark.parametrize("header", [None, "", "abc.def", "Basic abc", "Bearer "])
def test_extract_bearer_token_rejects_bad_headers(header):
    with pytest.raises(Unauthenticated):
        _extract_bearer_token(header)

"""Token issuance/verification and password hashing."""
from datetime import timedelta

import pytest
from jose import jwt

from backend.security import (
    TokenExpired,
    TokenMalformed,
    TokenService,
    get_password_hash,
    verify_password,
)


@pytest.fixture()
def service():
    return TokenService("s3cret", expires_minutes=60)


def test_issue_and_verify_round_trip(service):
    token = service.issue("64b000000000000000000001")
    assert service.verify(token) == "64b000000000000000000001"


def test_expired_token(service):
    token = service.issue("u1", expires_delta=timedelta(seconds=-1))
    with pytest.raises(TokenExpired):
        service.verify(token)


def test_wrong_secret_is_malformed(service):
    token = TokenService("other").issue("u1")
    with pytest.raises(TokenMalformed):
        service.verify(token)


@pytest.mark.parametrize("token", ["", "abc", "a.b.c"])
def test_garbage_is_malformed(service, token):
    with pytest.raises(TokenMalformed):
        service.verify(token)


def test_token_without_subject_is_malformed(service):
    token = jwt.encode({"exp": 9999999999}, "s3cret", algorithm="HS256")
    with pytest.raises(TokenMalformed):
        service.verify(token)


def test_password_hash_is_salted():
    h1 = get_password_hash("abc123")
    h2 = get_password_hash("abc123")
    assert h1 != h2
    assert verify_password("abc123", h1)
    assert verify_password("abc123", h2)
    assert not verify_password("abc124", h1)


def test_verify_against_junk_hash():
    assert not verify_password("abc123", "not-a-hash")

from datetime import timedelta

import pytest
from jose import jwt

from teamboard.core.exceptions import AuthError
from teamboard.core.security import TokenIssuer, get_password_hash, verify_password

@pytest.fixture
def issuer() -> TokenIssuer:
    return TokenIssuer("unit-test-secret", expire_days=30)

def test_password_hash_roundtrip():
    hashed = get_password_hash("pw123456")
    assert hashed != "pw123456"
    assert verify_password("pw123456", hashed)
    assert not verify_password("pw1234567", hashed)

def test_issue_and_verify(issuer: TokenIssuer):
    token = issuer.issue(42)
    assert issuer.verify(token) == 42
    claims = jwt.get_unverified_claims(token)
    assert claims["sub"] == "42"
    assert claims["exp"] - claims["iat"] == int(timedelta(days=30).total_seconds())

def test_verify_malformed(issuer: TokenIssuer):
    with pytest.raises(AuthError) as exc_info:
        issuer.verify("not-a-token")
    assert exc_info.value.reason == AuthError.MALFORMED
    assert exc_info.value.status_code == 401

def test_verify_wrong_secret(issuer: TokenIssuer):
    token = TokenIssuer("another-secret").issue(42)
    with pytest.raises(AuthError) as exc_info:
        issuer.verify(token)
    assert exc_info.value.reason == AuthError.INVALID_SIGNATURE

def test_verify_expired(issuer: TokenIssuer):
    token = issuer.issue(42, expires_delta=timedelta(seconds=-10))
    with pytest.raises(AuthError) as exc_info:
        issuer.verify(token)
    assert exc_info.value.reason == AuthError.EXPIRED

def test_verify_non_numeric_subject(issuer: TokenIssuer):
    token = jwt.encode({"sub": "alice"}, "unit-test-secret", algorithm="HS256")
    with pytest.raises(AuthError) as exc_info:
        issuer.verify(token)
    assert exc_info.value.reason == AuthError.MALFORMED

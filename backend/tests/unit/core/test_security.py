"""
Unit Tests for Security Module
Tests for: password hashing, purpose tokens, access tokens, OTP codes
"""
import pytest
from datetime import timedelta
from unittest.mock import patch

from app.core.exceptions import InvalidTokenError
from app.core.security import (
    verify_password,
    get_password_hash,
    create_purpose_token,
    create_email_verification_token,
    create_password_reset_token,
    decode_token,
    generate_access_token,
    hash_access_token,
    access_token_matches,
    generate_otp,
    generate_csrf_token,
    EMAIL_VERIFICATION_TOKEN,
    PASSWORD_RESET_TOKEN,
)


class TestPasswordHashing:
    """Test password hashing functions"""

    def test_hash_password_returns_different_value(self):
        hashed = get_password_hash("testpassword123")

        assert hashed != "testpassword123"
        assert hashed.startswith("$2")

    def test_hash_password_different_each_time(self):
        """Bcrypt generates different salts"""
        assert get_password_hash("testpassword123") != get_password_hash("testpassword123")

    def test_verify_password_correct(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("testpassword123", hashed) is True

    def test_verify_password_incorrect(self):
        hashed = get_password_hash("testpassword123")

        assert verify_password("wrongpassword", hashed) is False

    def test_verify_password_without_hash(self):
        """Admin-created students may have no password yet"""
        assert verify_password("anything", None) is False
        assert verify_password("anything", "") is False

    def test_long_password_truncated_to_bcrypt_limit(self):
        password = "x" * 100
        hashed = get_password_hash(password)

        assert verify_password("x" * 72, hashed) is True


class TestPurposeTokens:
    """JWTs for email verification and password reset"""

    def test_email_verification_token_roundtrip(self):
        token = create_email_verification_token("211524001", "budi@polban.ac.id")

        payload = decode_token(token, EMAIL_VERIFICATION_TOKEN)

        assert payload["sub"] == "211524001"
        assert payload["email"] == "budi@polban.ac.id"
        assert payload["type"] == EMAIL_VERIFICATION_TOKEN

    def test_password_reset_token_carries_reset_id(self):
        token = create_password_reset_token("budi@polban.ac.id", 42)

        payload = decode_token(token, PASSWORD_RESET_TOKEN)

        assert payload["sub"] == "budi@polban.ac.id"
        assert payload["rid"] == 42

    def test_token_of_other_purpose_rejected(self):
        token = create_email_verification_token("211524001", "budi@polban.ac.id")

        with pytest.raises(InvalidTokenError):
            decode_token(token, PASSWORD_RESET_TOKEN)

    def test_expired_token_rejected(self):
        token = create_purpose_token({"sub": "x"}, PASSWORD_RESET_TOKEN, timedelta(seconds=-1))

        with pytest.raises(InvalidTokenError):
            decode_token(token, PASSWORD_RESET_TOKEN)

    def test_garbage_token_rejected(self):
        with pytest.raises(InvalidTokenError):
            decode_token("not.a.token", EMAIL_VERIFICATION_TOKEN)


class TestAccessTokens:
    """Opaque bearer tokens"""

    def test_tokens_are_unique(self):
        assert generate_access_token() != generate_access_token()

    def test_hash_is_sha256_hex(self):
        digest = hash_access_token("abc")

        assert len(digest) == 64
        assert digest == hash_access_token("abc")

    def test_access_token_matches(self):
        token = generate_access_token()

        assert access_token_matches(token, hash_access_token(token)) is True
        assert access_token_matches("other", hash_access_token(token)) is False


class TestOneTimeCodes:
    """OTP and CSRF values"""

    def test_otp_is_four_digits(self):
        for _ in range(50):
            otp = generate_otp()
            assert len(otp) == 4
            assert 1000 <= int(otp) <= 9999

    def test_otp_bounds(self):
        with patch("app.core.security.secrets.randbelow", return_value=0):
            assert generate_otp() == "1000"
        with patch("app.core.security.secrets.randbelow", return_value=8999):
            assert generate_otp() == "9999"

    def test_csrf_tokens_are_unique(self):
        assert generate_csrf_token() != generate_csrf_token()

"""
Unit tests for authentication utilities.

Tests JWT token creation, validation, password hashing and Google profile
handling.
"""

import pytest
from datetime import datetime, timezone
from jwt.exceptions import InvalidTokenError

from daycare.auth import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
    display_name_from_profile,
    get_google_auth_url
)


@pytest.mark.unit
class TestJWTTokens:
    """Test JWT token creation and validation."""

    def test_decode_access_token(self):
        """Test decoding a valid access token."""
        user_id = "123e4567-e89b-12d3-a456-426614174000"

        token = create_access_token(user_id, "parent")
        payload = decode_token(token)

        assert payload["sub"] == user_id
        assert payload["role"] == "parent"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_decode_invalid_token(self):
        with pytest.raises(InvalidTokenError):
            decode_token("invalid.token.here")

    def test_decode_tampered_token(self):
        """Test decoding a tampered token raises error."""
        token = create_access_token("123e4567-e89b-12d3-a456-426614174000", "staff")
        tampered_token = token[:-5] + "xxxxx"

        with pytest.raises(InvalidTokenError):
            decode_token(tampered_token)

    def test_token_expires_in_the_future(self):
        token = create_access_token("123e4567-e89b-12d3-a456-426614174000", "parent")
        payload = decode_token(token)

        assert payload["exp"] > datetime.now(timezone.utc).timestamp()

    def test_access_token_additional_claims(self):
        token = create_access_token(
            "123e4567-e89b-12d3-a456-426614174000",
            "staff",
            {"custom_field": "custom_value"}
        )

        assert decode_token(token)["custom_field"] == "custom_value"


@pytest.mark.unit
class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password(self):
        password = "my_secure_password_123"

        hashed = hash_password(password)

        assert isinstance(hashed, str)
        assert hashed != password

    def test_verify_correct_and_incorrect_password(self):
        hashed = hash_password("my_secure_password_123")

        assert verify_password("my_secure_password_123", hashed) is True
        assert verify_password("wrong_password", hashed) is False

    def test_hash_same_password_twice_different_hashes(self):
        """Test that the salt makes every hash different."""
        password = "my_secure_password_123"

        hash1 = hash_password(password)
        hash2 = hash_password(password)

        assert hash1 != hash2
        assert verify_password(password, hash1) is True
        assert verify_password(password, hash2) is True

    def test_verify_with_invalid_hash(self):
        assert verify_password("my_secure_password_123", "not_a_valid_hash") is False

    def test_google_accounts_have_no_password(self):
        """Accounts without a stored hash never verify."""
        assert verify_password("anything", None) is False
        assert verify_password("anything", "") is False

    def test_password_case_sensitive(self):
        hashed = hash_password("MyPassword123")

        assert verify_password("MyPassword123", hashed) is True
        assert verify_password("mypassword123", hashed) is False


@pytest.mark.unit
class TestGoogleProfile:
    """Test Google sign-in helpers."""

    def test_display_name_uses_profile_name(self):
        assert display_name_from_profile({"name": " Maria Lopez ", "email": "m@example.com"}) == "Maria Lopez"

    def test_display_name_falls_back_to_email(self):
        assert display_name_from_profile({"email": "maria.lopez@example.com"}) == "maria.lopez"

    def test_auth_url_carries_state(self):
        url = get_google_auth_url(state="abc123")

        assert url.startswith("https://accounts.google.com/")
        assert "state=abc123" in url
        assert "scope=openid+email+profile" in url

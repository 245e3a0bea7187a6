"""
Unit tests for Pydantic model validation.

Tests input validation and normalization for API models.
"""

import pytest
from pydantic import ValidationError
from datetime import date

from daycare.models.user import RegisterRequest, UserLogin
from daycare.models.child import ChildCreate
from daycare.models.access_code import AccessCodeCreate, RedeemRequest
from daycare.models.linking import RepairRequest


@pytest.mark.unit
class TestRegisterValidation:
    """Test parent signup validation."""

    def test_register_normalizes_email_and_code(self):
        register = RegisterRequest(
            email="Parent@Example.com",
            password="secure_pass_123",
            display_name="Pat Parent",
            access_code=" ab12cd34 "
        )

        assert register.email == "parent@example.com"
        assert register.access_code == "AB12CD34"

    def test_register_short_password(self):
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(
                email="parent@example.com",
                password="123",
                display_name="Pat Parent",
                access_code="AB12CD34"
            )

        assert "password" in str(exc_info.value)

    def test_register_invalid_email(self):
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(
                email="not-an-email",
                password="secure_pass_123",
                display_name="Pat Parent",
                access_code="AB12CD34"
            )

        assert "email" in str(exc_info.value)

    def test_register_requires_access_code(self):
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(
                email="parent@example.com",
                password="secure_pass_123",
                display_name="Pat Parent"
            )

        assert "access_code" in str(exc_info.value)

    def test_user_login_missing_password(self):
        with pytest.raises(ValidationError) as exc_info:
            UserLogin(email="parent@example.com")

        assert "password" in str(exc_info.value)


@pytest.mark.unit
class TestChildValidation:
    """Test child enrollment validation."""

    def test_child_create_defaults(self):
        child = ChildCreate(
            first_name="Ava",
            last_name="Nguyen",
            parent_email="parent@example.com"
        )

        assert child.max_uses == 1
        assert child.expires_in_days == 30
        assert child.group is None

    def test_child_create_with_birth_date(self):
        child = ChildCreate(
            first_name="Ava",
            last_name="Nguyen",
            parent_email="parent@example.com",
            date_of_birth="2023-02-14",
            group="Toddler"
        )

        assert child.date_of_birth == date(2023, 2, 14)

    def test_child_create_unknown_group(self):
        with pytest.raises(ValidationError) as exc_info:
            ChildCreate(
                first_name="Ava",
                last_name="Nguyen",
                parent_email="parent@example.com",
                group="Kindergarten"
            )

        assert "group" in str(exc_info.value)

    def test_child_create_max_uses_bounds(self):
        with pytest.raises(ValidationError):
            ChildCreate(first_name="Ava", last_name="Nguyen", parent_email="parent@example.com", max_uses=0)
        with pytest.raises(ValidationError):
            ChildCreate(first_name="Ava", last_name="Nguyen", parent_email="parent@example.com", max_uses=11)

    def test_child_create_missing_parent_email(self):
        with pytest.raises(ValidationError) as exc_info:
            ChildCreate(first_name="Ava", last_name="Nguyen")

        assert "parent_email" in str(exc_info.value)


@pytest.mark.unit
class TestAccessCodeValidation:
    """Test access code request validation."""

    def test_redeem_requires_code(self):
        with pytest.raises(ValidationError):
            RedeemRequest(code="")

    def test_access_code_create_optional_code(self):
        options = AccessCodeCreate()

        assert options.code is None
        assert options.max_uses == 1

    def test_repair_request_requires_email(self):
        with pytest.raises(ValidationError):
            RepairRequest(parent_email="not-an-email")

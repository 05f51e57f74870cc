"""
Tests for Input Validation Utilities

Covers the storefront form rules: usernames, emails, passwords, phone numbers,
numeric fields (rating, quantity, price) and free-text sanitizing.
"""

import pytest
from allthatprinting.utils.validators import (
    InputValidator, ValidationResult, validate_username, validate_email, validate_password,
    validate_phone, validate_rating, validate_quantity, validate_price, sanitize_input,
)


class TestEmailValidation:
    """Test email validation"""

    def test_valid_emails(self):
        """Test that valid email addresses pass validation"""
        valid_emails = [
            "test@example.com",
            "user.name@domain.co.kr",
            "user+tag@example.org",
            "user_name@example.com",
            "a@b.c",
        ]

        for email in valid_emails:
            result = validate_email(email)
            assert result.is_valid, f"Email '{email}' should be valid: {result.error_message}"
            assert result.sanitized_value == email.lower()

    def test_invalid_emails(self):
        """Test that invalid email addresses fail validation"""
        invalid_emails = [
            "",
            "   ",
            "invalid-email",
            "@example.com",
            "user@",
            "user name@example.com",
            "user@example..com",
            ".user@example.com",
        ]

        for email in invalid_emails:
            result = validate_email(email)
            assert not result.is_valid, f"Email '{email}' should be invalid"
            assert result.error_message is not None

    def test_email_normalization(self):
        """Test that emails are trimmed and lowercased"""
        result = validate_email("  TEST@EXAMPLE.COM  ")
        assert result.is_valid
        assert result.sanitized_value == "test@example.com"

    def test_local_part_length_limit(self):
        assert validate_email("a" * 64 + "@example.com").is_valid
        assert not validate_email("a" * 65 + "@example.com").is_valid


class TestUsernameAndPassword:
    """Test account credential rules"""

    def test_valid_usernames(self):
        for username in ("abc", "user_01", "A" * 30):
            assert validate_username(username).is_valid, username

    def test_invalid_usernames(self):
        for username in ("", "ab", "has space", "한글아이디", "a" * 31, None):
            result = validate_username(username)
            assert not result.is_valid
            assert result.error_message

    def test_password_length(self):
        assert validate_password("12345678").is_valid
        assert not validate_password("1234567").is_valid
        assert not validate_password("a" * 129).is_valid
        assert validate_password("").error_message == "비밀번호를 입력해주세요."


class TestPhoneValidation:
    """Test Korean phone number validation"""

    def test_dashes_are_removed(self):
        result = validate_phone("010-1234-5678")
        assert result.is_valid
        assert result.sanitized_value == "01012345678"

    def test_landline_accepted(self):
        assert validate_phone("02-123-4567").is_valid

    def test_invalid_phone(self):
        for phone in ("", "12345", "010-12-34", "phone"):
            assert not validate_phone(phone).is_valid


class TestNumericValidation:
    """Test integer coercion used by ratings, quantities and prices"""

    def test_rating_bounds(self):
        assert validate_rating(1).is_valid
        assert validate_rating(5).is_valid
        assert not validate_rating(0).is_valid
        assert not validate_rating(6).is_valid

    def test_numeric_strings_are_coerced(self):
        result = validate_quantity("3")
        assert result.is_valid
        assert result.sanitized_value == 3

    def test_whole_floats_are_accepted(self):
        result = validate_price(12000.0)
        assert result.is_valid
        assert result.sanitized_value == 12000

    def test_rejects_fractions_booleans_and_garbage(self):
        for value in (1.5, True, False, "abc", None, [], "1e3"):
            assert not validate_quantity(value).is_valid, repr(value)

    def test_negative_price_rejected(self):
        assert not validate_price(-1).is_valid
        assert validate_price(0).is_valid

    def test_custom_bounds_and_message(self):
        result = InputValidator.validate_int(10, 1, 5, "범위 오류")
        assert result == ValidationResult(False, "범위 오류")


class TestSanitizeInput:
    """Test free-text sanitizing"""

    def test_strips_and_truncates(self):
        assert sanitize_input("  hello  ") == "hello"
        assert sanitize_input("a" * 20, max_length=5) == "aaaaa"

    def test_removes_null_bytes_and_normalizes_newlines(self):
        assert sanitize_input("a\x00b\r\nc\rd") == "ab\nc\nd"

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input(self, value):
        assert sanitize_input(value) == ""

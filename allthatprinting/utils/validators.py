"""
Input Validation Utilities

FLOW OVERVIEW
- validate_username(username)
  • 3-30 characters of letters, digits and underscore.
- validate_email(email)
  • RFC-like syntax checks; returns sanitized lowercased value.
- validate_password(password)
  • Length bounds only; shoppers are not forced into character classes.
- validate_rating / validate_quantity / validate_price
  • Coerce JSON numbers (or numeric strings) to int within range.
- sanitize_input(input, max_length)
  • Trim, bound length, normalize, and remove null bytes.

Messages are Korean because they are shown to shoppers as-is.
"""

import re
from typing import Any, Optional
from dataclasses import dataclass


@dataclass
class ValidationResult:
    """Result of validation operation"""
    is_valid: bool
    error_message: Optional[str] = None
    sanitized_value: Any = None


class InputValidator:
    """Validation rules for storefront forms"""

    EMAIL_PATTERN = re.compile(
        r'^[a-zA-Z0-9.!#$%&\'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$'
    )

    USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_]{3,30}$')

    PHONE_PATTERN = re.compile(r'^0\d{1,2}-?\d{3,4}-?\d{4}$')

    @classmethod
    def validate_username(cls, username: str) -> ValidationResult:
        if not username or not isinstance(username, str):
            return ValidationResult(False, "아이디를 입력해주세요.")

        username = username.strip()
        if not cls.USERNAME_PATTERN.match(username):
            return ValidationResult(False, "아이디는 3~30자의 영문, 숫자, 밑줄(_)만 사용할 수 있습니다.")

        return ValidationResult(True, sanitized_value=username)

    @classmethod
    def validate_email(cls, email: str) -> ValidationResult:
        """
        Validate email address

        Args:
            email: Email address to validate

        Returns:
            ValidationResult with validation status and sanitized value
        """
        if not email or not isinstance(email, str):
            return ValidationResult(False, "이메일을 입력해주세요.")

        email = email.strip()
        if email == "":
            return ValidationResult(False, "이메일을 입력해주세요.")

        # RFC 5321 limits
        if len(email) > 254:
            return ValidationResult(False, "이메일 주소가 너무 깁니다.")

        if email.count('@') != 1 or not cls.EMAIL_PATTERN.match(email):
            return ValidationResult(False, "올바른 이메일 형식이 아닙니다.")

        local_part, domain = email.split('@')
        if len(local_part) > 64:
            return ValidationResult(False, "올바른 이메일 형식이 아닙니다.")

        if local_part.startswith('.') or local_part.endswith('.') or '..' in local_part:
            return ValidationResult(False, "올바른 이메일 형식이 아닙니다.")

        if '..' in domain:
            return ValidationResult(False, "올바른 이메일 형식이 아닙니다.")

        return ValidationResult(True, sanitized_value=email.lower())

    @classmethod
    def validate_password(cls, password: str) -> ValidationResult:
        if not password or not isinstance(password, str):
            return ValidationResult(False, "비밀번호를 입력해주세요.")

        if len(password) < 8:
            return ValidationResult(False, "비밀번호는 8자 이상이어야 합니다.")

        if len(password) > 128:
            return ValidationResult(False, "비밀번호는 128자 이하여야 합니다.")

        return ValidationResult(True, sanitized_value=password)

    @classmethod
    def validate_phone(cls, phone: str) -> ValidationResult:
        if not phone or not isinstance(phone, str):
            return ValidationResult(False, "전화번호를 입력해주세요.")

        phone = phone.strip()
        if not cls.PHONE_PATTERN.match(phone):
            return ValidationResult(False, "올바른 전화번호 형식이 아닙니다.")

        return ValidationResult(True, sanitized_value=phone.replace('-', ''))

    @classmethod
    def validate_int(cls, value, minimum=None, maximum=None, message="올바른 숫자가 아닙니다.") -> ValidationResult:
        """Coerce a JSON value to int and check its bounds."""
        # bool is an int subclass; true/false are never quantities
        if isinstance(value, bool):
            return ValidationResult(False, message)
        if isinstance(value, float):
            if not value.is_integer():
                return ValidationResult(False, message)
            value = int(value)
        elif isinstance(value, str):
            value = value.strip()
            if not re.fullmatch(r'-?\d+', value):
                return ValidationResult(False, message)
            value = int(value)
        elif not isinstance(value, int):
            return ValidationResult(False, message)

        if minimum is not None and value < minimum:
            return ValidationResult(False, message)
        if maximum is not None and value > maximum:
            return ValidationResult(False, message)

        return ValidationResult(True, sanitized_value=value)

    @classmethod
    def sanitize_input(cls, input_string: str, max_length: int = 1000) -> str:
        """
        Sanitize free-text user input

        Args:
            input_string: Input string to sanitize
            max_length: Maximum allowed length

        Returns:
            Sanitized string
        """
        if not input_string:
            return ""

        sanitized = str(input_string).strip()

        if len(sanitized) > max_length:
            sanitized = sanitized[:max_length]

        # Remove null bytes
        sanitized = sanitized.replace('\x00', '')

        # Normalize line endings
        sanitized = sanitized.replace('\r\n', '\n').replace('\r', '\n')

        return sanitized


# Convenience functions for common validations
def validate_username(username: str) -> ValidationResult:
    return InputValidator.validate_username(username)


def validate_email(email: str) -> ValidationResult:
    """Validate email address"""
    return InputValidator.validate_email(email)


def validate_password(password: str) -> ValidationResult:
    return InputValidator.validate_password(password)


def validate_phone(phone: str) -> ValidationResult:
    return InputValidator.validate_phone(phone)


def validate_rating(rating) -> ValidationResult:
    """Review rating, 1 to 5 stars"""
    return InputValidator.validate_int(rating, 1, 5, "평점은 1~5 사이의 정수여야 합니다.")


def validate_quantity(quantity) -> ValidationResult:
    return InputValidator.validate_int(quantity, 1, 9999, "수량은 1 이상의 정수여야 합니다.")


def validate_price(price) -> ValidationResult:
    return InputValidator.validate_int(price, 0, None, "가격은 0 이상의 정수여야 합니다.")


def sanitize_input(input_string: str, max_length: int = 1000) -> str:
    """Sanitize user input"""
    return InputValidator.sanitize_input(input_string, max_length)

"""
Model Utilities

This module contains utility functions for the models package.
"""

import secrets
import string


def generate_temporary_password(length=8):
    """Generate a random alphanumeric temporary password"""
    alphabet = string.ascii_letters + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def generate_coupon_code(length=10):
    """Generate an upper-case coupon code"""
    return ''.join(secrets.choice(string.ascii_uppercase + string.digits) for _ in range(length))


def isoformat(value):
    """Serialize an optional datetime"""
    return value.isoformat() if value else None

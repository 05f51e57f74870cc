"""
API Utilities Module

FLOW OVERVIEW
- APIRequestValidator
  • validate_json_request → parse/validate JSON and return (ok, data, error).
  • parse_json_body → same checks, raising APIError so routes stay linear.
  • require_fields → reject payloads missing any required field.
- pick(data, *keys) → first present key; the web client sends both snake_case and camelCase.
- require_id / parse_bool / get_or_404 / get_client_ip → small request helpers shared by blueprints.
"""

import logging
from typing import Dict, Any, Tuple, Optional
from flask import request

from ..models import db
from .error_handlers import APIError


class APIRequestValidator:
    """Handles common request validation logic."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate_json_request(self, client_ip: str = None) -> Tuple[bool, Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """
        Validate and parse JSON request.

        Args:
            client_ip: Client IP for logging

        Returns:
            Tuple of (is_valid, data, error_response)
        """
        if not request.get_data(cache=True):
            self.logger.warning(f"Empty request body from {client_ip}")
            return False, None, {
                'success': False,
                'error_code': 'MISSING_JSON',
                'error': '요청 본문(JSON)이 필요합니다.'
            }

        try:
            data = request.get_json(force=True)
        except Exception as e:
            self.logger.warning(f"Invalid JSON from {client_ip}: {str(e)}")
            return False, None, {
                'success': False,
                'error_code': 'INVALID_JSON',
                'error': '올바른 JSON 형식이 아닙니다.'
            }

        if not isinstance(data, dict):
            self.logger.warning(f"Invalid data type from {client_ip}: {type(data)}")
            return False, None, {
                'success': False,
                'error_code': 'INVALID_DATA_TYPE',
                'error': '요청 데이터는 JSON 객체여야 합니다.'
            }

        return True, data, None

    def parse_json_body(self, allow_empty: bool = False) -> Dict[str, Any]:
        """Return the JSON object body or raise APIError."""
        if allow_empty and not request.get_data(cache=True):
            return {}
        is_valid, data, error = self.validate_json_request(get_client_ip())
        if not is_valid:
            raise APIError(error['error'], 400, error['error_code'])
        return data

    def require_fields(self, data: Dict[str, Any], *fields: str, message: str = None) -> None:
        """Raise APIError when any field is missing or blank."""
        missing = [field for field in fields if data.get(field) in (None, '')]
        if missing:
            self.logger.info(f"Missing fields {missing} for {request.path}")
            raise APIError(message or f"필수 항목이 누락되었습니다: {', '.join(missing)}", 400, 'MISSING_FIELDS')


def pick(data: Dict[str, Any], *keys: str, default=None):
    """Return the value of the first key present in data."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def parse_bool(value) -> bool:
    """Interpret query-string and JSON truthiness ('1', 'true', True)."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def require_id(data: Dict[str, Any], *keys: str, message: str = 'ID가 필요합니다.') -> int:
    """Positive integer id from the first present key, or APIError."""
    value = pick(data, *keys)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise APIError(message, 400, 'MISSING_FIELDS')
    return value


def get_or_404(model, object_id, message='요청한 리소스를 찾을 수 없습니다.'):
    """Fetch a row by primary key or raise a 404 APIError."""
    obj = db.session.get(model, object_id)
    if obj is None:
        raise APIError(message, 404)
    return obj


def get_client_ip() -> Optional[str]:
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.remote_addr


# Global instances
request_validator = APIRequestValidator()

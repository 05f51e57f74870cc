#!/usr/bin/env python3
"""
Unit tests for the API utilities module
"""

import pytest
from allthatprinting.models import User
from allthatprinting.utils.api_utils import (
    APIRequestValidator, request_validator, pick, parse_bool, require_id, get_or_404, get_client_ip,
)
from allthatprinting.utils.error_handlers import APIError


class TestAPIRequestValidator:
    """Test the APIRequestValidator class."""

    def test_validate_json_request_valid(self, app):
        """Test validating a valid JSON request."""
        with app.test_request_context(json={'test': 'data'}):
            validator = APIRequestValidator()
            is_valid, data, error = validator.validate_json_request('127.0.0.1')

            assert is_valid is True
            assert data == {'test': 'data'}
            assert error is None

    def test_validate_json_request_invalid_json(self, app):
        """Test validating an invalid JSON request."""
        with app.test_request_context(data='invalid json', content_type='application/json'):
            is_valid, data, error = APIRequestValidator().validate_json_request('127.0.0.1')

            assert is_valid is False
            assert data is None
            assert error['error_code'] == 'INVALID_JSON'

    def test_validate_json_request_empty_data(self, app):
        """Test validating an empty request."""
        with app.test_request_context():
            is_valid, data, error = APIRequestValidator().validate_json_request('127.0.0.1')

            assert is_valid is False
            assert error['error_code'] == 'MISSING_JSON'

    def test_validate_json_request_non_object(self, app):
        """Test that a JSON array is rejected."""
        with app.test_request_context(json=[1, 2, 3]):
            is_valid, data, error = APIRequestValidator().validate_json_request('127.0.0.1')

            assert is_valid is False
            assert error['error_code'] == 'INVALID_DATA_TYPE'

    def test_parse_json_body_raises(self, app):
        with app.test_request_context(data='{oops', content_type='application/json'):
            with pytest.raises(APIError) as exc_info:
                request_validator.parse_json_body()
            assert exc_info.value.status_code == 400
            assert exc_info.value.error_code == 'INVALID_JSON'

    def test_parse_json_body_allow_empty(self, app):
        with app.test_request_context(method='POST'):
            assert request_validator.parse_json_body(allow_empty=True) == {}

    def test_require_fields(self, app):
        with app.test_request_context():
            request_validator.require_fields({'a': 1, 'b': 'x'}, 'a', 'b')
            with pytest.raises(APIError) as exc_info:
                request_validator.require_fields({'a': '', 'b': None}, 'a', 'b')
            assert exc_info.value.error_code == 'MISSING_FIELDS'
            assert 'a, b' in exc_info.value.message


class TestRequestHelpers:
    """Test the small helpers shared by blueprints."""

    def test_pick_prefers_first_present_key(self):
        assert pick({'product_id': 1, 'productId': 2}, 'productId', 'product_id') == 2
        assert pick({'productId': None, 'product_id': 3}, 'productId', 'product_id') == 3
        assert pick({}, 'missing', default='x') == 'x'

    @pytest.mark.parametrize("value,expected", [
        (True, True), ('1', True), ('true', True), ('YES', True),
        (False, False), ('0', False), (None, False), ('', False),
    ])
    def test_parse_bool(self, value, expected):
        assert parse_bool(value) is expected

    def test_require_id(self):
        assert require_id({'orderId': 5}, 'orderId') == 5
        assert require_id({'orderId': ' 7 '}, 'orderId') == 7
        for bad in ({}, {'orderId': 0}, {'orderId': True}, {'orderId': 'abc'}, {'orderId': -1}):
            with pytest.raises(APIError):
                require_id(bad, 'orderId')

    def test_get_or_404(self, db_session, test_user):
        assert get_or_404(User, test_user.id) is test_user
        with pytest.raises(APIError) as exc_info:
            get_or_404(User, 9999, '사용자를 찾을 수 없습니다.')
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == '사용자를 찾을 수 없습니다.'

    def test_get_client_ip_uses_forwarded_header(self, app):
        with app.test_request_context(headers={'X-Forwarded-For': '10.0.0.1, 10.0.0.2'}):
            assert get_client_ip() == '10.0.0.1'


class TestErrorResponses:
    """Test the JSON error format."""

    def test_unknown_route_returns_json_404(self, client):
        response = client.get('/api/does-not-exist')
        assert response.status_code == 404
        assert response.get_json()['error_code'] == 'NOT_FOUND'

    def test_method_not_allowed(self, client):
        response = client.delete('/health')
        assert response.status_code == 405
        assert response.get_json()['success'] is False

    def test_invalid_json_body(self, client, db_session):
        response = client.post('/api/auth/login', data='not json', content_type='application/json')
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'INVALID_JSON'

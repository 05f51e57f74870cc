"""
Error Handlers

FLOW OVERVIEW
- APIError(message, status_code, error_code)
  • Raised by helpers and routes for expected failures (validation, permissions, missing rows).
- register_error_handlers(app)
  • Renders APIError and common HTTP errors as JSON bodies.
  • 500 rolls back the session before responding.
"""

from flask import jsonify


class APIError(Exception):
    """Expected failure reported to the client as a JSON error body"""

    def __init__(self, message, status_code=400, error_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or default_error_code(status_code)

    def to_dict(self):
        return {
            'success': False,
            'error_code': self.error_code,
            'error': self.message,
        }


def default_error_code(status_code):
    return {
        400: 'BAD_REQUEST',
        401: 'UNAUTHORIZED',
        403: 'FORBIDDEN',
        404: 'NOT_FOUND',
        405: 'METHOD_NOT_ALLOWED',
        409: 'CONFLICT',
        502: 'PAYMENT_GATEWAY_ERROR',
    }.get(status_code, 'INTERNAL_ERROR')


def error_response(message, status_code, error_code=None):
    """Build a (response, status) pair in the shared error format"""
    return jsonify(APIError(message, status_code, error_code).to_dict()), status_code


def register_error_handlers(app):
    """Register error handlers with the Flask app"""

    @app.errorhandler(APIError)
    def handle_api_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(400)
    def bad_request(error):
        return error_response('잘못된 요청입니다.', 400)

    @app.errorhandler(401)
    def unauthorized(error):
        return error_response('로그인이 필요합니다.', 401)

    @app.errorhandler(403)
    def forbidden(error):
        return error_response('접근 권한이 없습니다.', 403)

    @app.errorhandler(404)
    def not_found(error):
        return error_response('요청한 리소스를 찾을 수 없습니다.', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response('허용되지 않은 요청 방식입니다.', 405)

    @app.errorhandler(500)
    def internal_error(error):
        from ..models import db
        db.session.rollback()
        app.logger.error(f"Unhandled server error: {error}")
        return error_response('서버 오류가 발생했습니다. 잠시 후 다시 시도해주세요.', 500)

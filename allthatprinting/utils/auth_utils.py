"""
Authentication Utilities

FLOW OVERVIEW
- hash_password / verify_password: bcrypt (10 rounds).
- generate_jwt_token(user) / verify_jwt_token(token): HS256 JWT carrying id, username,
  email and admin flag; valid JWT_EXPIRES_DAYS days.
- get_token_from_request(): Authorization Bearer header first, then the `token` cookie.
- token_required / admin_required: route decorators; the authenticated user is
  available as g.current_user.
- ensure_self_or_admin(user_id): guard for /user/<id> style routes.
- send_temporary_password_email(user, password): Flask-Mail delivery of a reset password.
"""

import logging
from datetime import datetime, timedelta
from functools import wraps

import bcrypt
import jwt
from flask import current_app, g, request
from flask_mail import Message

from ..models import db, User
from .error_handlers import APIError

logger = logging.getLogger(__name__)


def hash_password(password):
    """Hash a password using bcrypt"""
    salt = bcrypt.gensalt(rounds=10)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password, password_hash):
    """Verify a password against its hash"""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def generate_jwt_token(user):
    """Generate a login token for a user"""
    now = datetime.utcnow()
    payload = {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'isAdmin': user.is_administrator,
        'iat': now,
        'exp': now + timedelta(days=current_app.config['JWT_EXPIRES_DAYS']),
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET_KEY'], algorithm='HS256')


def verify_jwt_token(token):
    """Verify and decode a JWT token"""
    try:
        return jwt.decode(token, current_app.config['JWT_SECRET_KEY'], algorithms=['HS256'])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def get_token_from_request():
    auth_header = (request.headers.get('Authorization') or '').strip()
    if auth_header.lower().startswith('bearer '):
        token = auth_header.split(' ', 1)[1].strip()
        if token:
            return token
    return request.cookies.get(current_app.config['AUTH_COOKIE_NAME'])


def authenticate_request():
    """Resolve the user behind the request token or raise APIError."""
    token = get_token_from_request()
    if not token:
        raise APIError('토큰이 필요합니다.', 401, 'TOKEN_REQUIRED')

    payload = verify_jwt_token(token)
    user = db.session.get(User, payload.get('id')) if payload else None
    if user is None:
        raise APIError('토큰이 유효하지 않습니다.', 403, 'INVALID_TOKEN')
    return user


def get_optional_user():
    """The authenticated user, or None when no valid token was sent."""
    token = get_token_from_request()
    payload = verify_jwt_token(token) if token else None
    if not payload:
        return None
    return db.session.get(User, payload.get('id'))


def token_required(f):
    """Decorator to require a valid login token"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = authenticate_request()
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require an administrator"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = authenticate_request()
        if not user.is_administrator:
            logger.warning(f"Non-admin user {user.id} attempted {request.method} {request.path}")
            raise APIError('관리자 권한이 필요합니다.', 403, 'ADMIN_REQUIRED')
        g.current_user = user
        return f(*args, **kwargs)
    return decorated_function


def ensure_self_or_admin(user_id):
    """Only the user themself or an admin may touch per-user resources."""
    user = g.current_user
    if user.id != user_id and not user.is_administrator:
        raise APIError('접근 권한이 없습니다.', 403)


def set_auth_cookie(response, token):
    response.set_cookie(
        current_app.config['AUTH_COOKIE_NAME'],
        token,
        max_age=current_app.config['JWT_EXPIRES_DAYS'] * 24 * 60 * 60,
        httponly=True,
        secure=current_app.config['AUTH_COOKIE_SECURE'],
        samesite='Strict',
    )
    return response


def clear_auth_cookie(response):
    response.delete_cookie(current_app.config['AUTH_COOKIE_NAME'])
    return response


def send_temporary_password_email(user, temporary_password):
    """Email a temporary password. Returns True when the message was handed to the mailer."""
    msg = Message(
        '[올댓프린팅] 임시 비밀번호 안내',
        recipients=[user.email],
        sender=current_app.config.get('MAIL_DEFAULT_SENDER'),
    )
    msg.body = (
        f"{user.username}님, 요청하신 임시 비밀번호는 {temporary_password} 입니다.\n"
        "로그인 후 반드시 비밀번호를 변경해주세요."
    )

    try:
        current_app.extensions['mail'].send(msg)
        current_app.logger.info(f"Temporary password email sent to {user.email}")
        return True
    except Exception as e:
        current_app.logger.error(f"Failed to send temporary password email: {e}")
        return False

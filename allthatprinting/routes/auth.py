"""
Authentication Routes

FLOW OVERVIEW
- /api/auth/register [POST]
  • Validate username/email/password, reject duplicates, hash with bcrypt, issue JWT (body + cookie).
- /api/auth/login [POST]
  • Username or email plus password; issues JWT (body + cookie).
- /api/auth/logout [POST]
  • Clear the auth cookie.
- /api/auth/me [GET]
  • Current user with seller registration and admin flag.
- /api/auth/find-id [POST]
  • Username lookup by email.
- /api/auth/find-password [POST]
  • Reset to a temporary password, always emailed to the account address.
- /api/users/<id> [PATCH]
  • Profile update (self or admin).
"""

from flask import Blueprint, jsonify, current_app, g, make_response
from sqlalchemy.exc import IntegrityError

from ..models import db, User
from ..models.utils import generate_temporary_password
from ..utils.api_utils import request_validator, pick, get_or_404
from ..utils.auth_utils import (
    hash_password, verify_password, generate_jwt_token, token_required, ensure_self_or_admin,
    set_auth_cookie, clear_auth_cookie, send_temporary_password_email,
)
from ..utils.error_handlers import APIError
from ..utils.validators import (
    validate_username, validate_email, validate_password, validate_phone, sanitize_input,
)

auth_bp = Blueprint('auth', __name__)


def _login_response(user, status_code=200):
    token = generate_jwt_token(user)
    payload = user.to_dict()
    payload['token'] = token
    response = make_response(jsonify(payload), status_code)
    return set_auth_cookie(response, token)


@auth_bp.route('/auth/register', methods=['POST'])
def register():
    """Create an account and log it in"""
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'username', 'email', 'password',
                                     message='아이디, 이메일, 비밀번호는 필수입니다.')

    for result in (validate_username(data['username']), validate_email(data['email']),
                   validate_password(data['password'])):
        if not result.is_valid:
            raise APIError(result.error_message, 400, 'VALIDATION_ERROR')

    username = data['username'].strip()
    email = data['email'].strip().lower()
    if User.query.filter_by(username=username).first():
        raise APIError('이미 사용 중인 아이디입니다.', 400, 'DUPLICATE_USERNAME')
    if User.query.filter_by(email=email).first():
        raise APIError('이미 사용 중인 이메일입니다.', 400, 'DUPLICATE_EMAIL')

    try:
        user = User(
            username=username,
            email=email,
            password_hash=hash_password(data['password']),
            first_name=sanitize_input(pick(data, 'firstName', 'first_name', default=''), 50) or None,
            last_name=sanitize_input(pick(data, 'lastName', 'last_name', default=''), 50) or None,
        )
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        db.session.rollback()
        raise APIError('이미 사용 중인 아이디 또는 이메일입니다.', 400, 'DUPLICATE_USER')

    current_app.logger.info(f"New user registered: {user.username}")
    return _login_response(user, 201)


@auth_bp.route('/auth/login', methods=['POST'])
def login():
    """Log in with username (or email) and password"""
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'username', 'password',
                                     message='아이디와 비밀번호를 입력해주세요.')

    user = User.find_by_login(data['username'])
    if user is None or not verify_password(data['password'], user.password_hash):
        current_app.logger.info(f"Failed login for {data['username']!r}")
        raise APIError('아이디 또는 비밀번호가 올바르지 않습니다.', 401, 'INVALID_CREDENTIALS')

    return _login_response(user)


@auth_bp.route('/auth/logout', methods=['POST'])
def logout():
    response = make_response(jsonify({'message': '로그아웃되었습니다.'}))
    return clear_auth_cookie(response)


@auth_bp.route('/auth/me')
@token_required
def me():
    user = g.current_user
    payload = user.to_dict()
    payload['seller'] = user.seller.to_dict() if user.seller else None
    return jsonify(payload)


@auth_bp.route('/auth/find-id', methods=['POST'])
def find_id():
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'email', message='이메일을 입력해주세요.')

    user = User.query.filter_by(email=data['email'].strip().lower()).first()
    if user is None:
        raise APIError('등록된 이메일을 찾을 수 없습니다.', 404)
    return jsonify({'username': user.username})


@auth_bp.route('/auth/find-password', methods=['POST'])
def find_password():
    """Issue a temporary password for a username + email (or phone) pair"""
    data = request_validator.parse_json_body()
    request_validator.require_fields(data, 'username', message='아이디를 입력해주세요.')

    method = data.get('method') or ('phone' if data.get('phone') else 'email')
    if method == 'phone' and not data.get('phone'):
        raise APIError('휴대폰 번호를 입력해 주세요.', 400, 'MISSING_FIELDS')
    if method != 'phone' and not data.get('email'):
        raise APIError('이메일을 입력해 주세요.', 400, 'MISSING_FIELDS')

    user = User.query.filter_by(username=data['username'].strip()).first()
    if method == 'phone':
        phone = validate_phone(data.get('phone'))
        matched = (user is not None and phone.is_valid and user.phone
                   and user.phone.replace('-', '') == phone.sanitized_value)
    else:
        matched = user is not None and user.email == (data.get('email') or '').strip().lower()
    if not matched:
        raise APIError('입력하신 정보와 일치하는 계정을 찾을 수 없습니다.', 404)

    temporary_password = generate_temporary_password()
    user.password_hash = hash_password(temporary_password)
    db.session.commit()
    current_app.logger.info(f"Temporary password issued for {user.username} via {method}")

    # Without an SMS provider the password always goes to the account email
    sent = send_temporary_password_email(user, temporary_password)
    return jsonify({'message': '임시 비밀번호가 등록된 이메일로 발송되었습니다.', 'emailSent': sent})


@auth_bp.route('/users/<int:user_id>', methods=['PATCH'])
@token_required
def update_user(user_id):
    ensure_self_or_admin(user_id)
    user = get_or_404(User, user_id, '사용자를 찾을 수 없습니다.')
    data = request_validator.parse_json_body()

    if 'email' in data:
        email = validate_email(data['email'])
        if not email.is_valid:
            raise APIError(email.error_message, 400, 'VALIDATION_ERROR')
        other = User.query.filter_by(email=email.sanitized_value).first()
        if other is not None and other.id != user.id:
            raise APIError('이미 사용 중인 이메일입니다.', 400, 'DUPLICATE_EMAIL')
        user.email = email.sanitized_value
    if 'phone' in data:
        phone = validate_phone(data['phone'])
        if not phone.is_valid:
            raise APIError(phone.error_message, 400, 'VALIDATION_ERROR')
        user.phone = phone.sanitized_value
    for key, attr in (('firstName', 'first_name'), ('lastName', 'last_name'), ('address', 'address')):
        if key in data:
            setattr(user, attr, sanitize_input(data[key], 255) or None)

    db.session.commit()
    return jsonify(user.to_dict())

import pytest

from allthatprinting import mail
from allthatprinting.models import User
from allthatprinting.utils.auth_utils import (
    hash_password, verify_password, generate_jwt_token, verify_jwt_token,
)
from conftest import make_user


class TestPasswordHashing:
    """Test bcrypt helpers"""

    def test_hash_and_verify(self):
        hashed = hash_password('TestPass123!')
        assert hashed != 'TestPass123!'
        assert hashed.startswith('$2')
        assert verify_password('TestPass123!', hashed)
        assert not verify_password('wrong-password', hashed)

    def test_verify_rejects_non_bcrypt_hash(self):
        assert not verify_password('anything', 'not-a-bcrypt-hash')
        assert not verify_password('', hash_password('TestPass123!'))


class TestJWT:
    """Test token generation and verification"""

    def test_token_payload(self, db_session, test_user):
        payload = verify_jwt_token(generate_jwt_token(test_user))
        assert payload['id'] == test_user.id
        assert payload['username'] == 'testuser'
        assert payload['email'] == 'test@example.com'
        assert payload['isAdmin'] is False

    def test_tampered_token_rejected(self, db_session, test_user):
        token = generate_jwt_token(test_user)
        assert verify_jwt_token(token + 'x') is None

    def test_username_admin_is_administrator(self, db_session):
        user = make_user(db_session, 'admin', 'root@example.com')
        assert user.is_administrator
        assert verify_jwt_token(generate_jwt_token(user))['isAdmin'] is True


class TestRegisterAndLogin:
    """Test account creation and login"""

    def test_register_success(self, client, db_session):
        response = client.post('/api/auth/register', json={
            'username': 'newuser',
            'email': 'New@Example.com',
            'password': 'password123',
        })
        assert response.status_code == 201
        data = response.get_json()
        assert data['username'] == 'newuser'
        assert data['email'] == 'new@example.com'
        assert data['token']
        assert 'passwordHash' not in data and 'password_hash' not in data
        assert 'token=' in response.headers.get('Set-Cookie', '')
        assert 'HttpOnly' in response.headers.get('Set-Cookie', '')

        user = User.query.filter_by(username='newuser').first()
        assert verify_password('password123', user.password_hash)

    def test_register_duplicate_username(self, client, test_user):
        response = client.post('/api/auth/register', json={
            'username': 'testuser', 'email': 'another@example.com', 'password': 'password123',
        })
        assert response.status_code == 400
        assert response.get_json()['error'] == '이미 사용 중인 아이디입니다.'

    def test_register_duplicate_email(self, client, test_user):
        response = client.post('/api/auth/register', json={
            'username': 'another', 'email': 'TEST@example.com', 'password': 'password123',
        })
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'DUPLICATE_EMAIL'

    @pytest.mark.parametrize('payload', [
        {'username': 'ab', 'email': 'a@example.com', 'password': 'password123'},
        {'username': 'valid_user', 'email': 'not-an-email', 'password': 'password123'},
        {'username': 'valid_user', 'email': 'a@example.com', 'password': 'short'},
    ])
    def test_register_validation(self, client, db_session, payload):
        response = client.post('/api/auth/register', json=payload)
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'VALIDATION_ERROR'

    def test_register_missing_fields(self, client, db_session):
        response = client.post('/api/auth/register', json={'username': 'someone'})
        assert response.status_code == 400
        assert response.get_json()['error_code'] == 'MISSING_FIELDS'

    def test_login_with_username_and_email(self, client, test_user):
        for identifier in ('testuser', 'test@example.com'):
            response = client.post('/api/auth/login', json={'username': identifier, 'password': 'TestPass123!'})
            assert response.status_code == 200
            assert response.get_json()['id'] == test_user.id

    def test_login_wrong_password(self, client, test_user):
        response = client.post('/api/auth/login', json={'username': 'testuser', 'password': 'nope'})
        assert response.status_code == 401
        assert response.get_json()['error_code'] == 'INVALID_CREDENTIALS'

    def test_logout_clears_cookie(self, client, db_session):
        response = client.post('/api/auth/logout')
        assert response.status_code == 200
        assert 'token=;' in response.headers.get('Set-Cookie', '')


class TestTokenRequired:
    """Test the token decorators through /api/auth/me"""

    def test_missing_token(self, client, db_session):
        response = client.get('/api/auth/me')
        assert response.status_code == 401
        assert response.get_json()['error'] == '토큰이 필요합니다.'

    def test_invalid_token(self, client, db_session):
        response = client.get('/api/auth/me', headers={'Authorization': 'Bearer garbage'})
        assert response.status_code == 403
        assert response.get_json()['error'] == '토큰이 유효하지 않습니다.'

    def test_bearer_token(self, client, test_user, user_headers):
        response = client.get('/api/auth/me', headers=user_headers)
        assert response.status_code == 200
        data = response.get_json()
        assert data['username'] == 'testuser'
        assert data['seller'] is None

    def test_cookie_token(self, client, test_user):
        client.set_cookie('token', generate_jwt_token(test_user))
        response = client.get('/api/auth/me')
        assert response.status_code == 200
        assert response.get_json()['id'] == test_user.id

    def test_admin_required(self, client, user_headers, admin_headers):
        assert client.get('/api/admin/stats', headers=user_headers).status_code == 403
        assert client.get('/api/admin/stats', headers=admin_headers).status_code == 200


class TestAccountRecovery:
    """Test find-id and find-password"""

    def test_find_id(self, client, test_user):
        response = client.post('/api/auth/find-id', json={'email': 'test@example.com'})
        assert response.status_code == 200
        assert response.get_json() == {'username': 'testuser'}

    def test_find_id_unknown_email(self, client, db_session):
        response = client.post('/api/auth/find-id', json={'email': 'nobody@example.com'})
        assert response.status_code == 404

    def test_find_password_emails_temporary_password(self, app, client, test_user):
        with mail.record_messages() as outbox:
            response = client.post('/api/auth/find-password', json={
                'username': 'testuser', 'email': 'test@example.com',
            })

        assert response.status_code == 200
        data = response.get_json()
        assert data['emailSent'] is True
        assert 'password' not in data and 'temporaryPassword' not in data

        assert len(outbox) == 1
        message = outbox[0]
        assert message.recipients == ['test@example.com']
        temporary = message.body.split('임시 비밀번호는 ')[1].split(' ')[0]
        assert len(temporary) == 8
        assert verify_password(temporary, test_user.password_hash)
        assert not verify_password('TestPass123!', test_user.password_hash)

    def test_find_password_by_phone(self, client, test_user):
        response = client.post('/api/auth/find-password', json={
            'username': 'testuser', 'method': 'phone', 'phone': '010-1234-5678',
        })
        assert response.status_code == 200

    def test_find_password_mismatch(self, client, test_user):
        response = client.post('/api/auth/find-password', json={
            'username': 'testuser', 'email': 'wrong@example.com',
        })
        assert response.status_code == 404

    def test_find_password_requires_contact(self, client, test_user):
        response = client.post('/api/auth/find-password', json={'username': 'testuser', 'method': 'phone'})
        assert response.status_code == 400


class TestUpdateUser:
    """Test profile updates"""

    def test_update_own_profile(self, client, test_user, user_headers):
        response = client.patch(f'/api/users/{test_user.id}', headers=user_headers, json={
            'firstName': '길동', 'lastName': '홍', 'phone': '010-9999-8888',
        })
        assert response.status_code == 200
        data = response.get_json()
        assert data['firstName'] == '길동'
        assert data['phone'] == '01099998888'

    def test_cannot_update_other_user(self, client, test_user, other_user, other_headers):
        response = client.patch(f'/api/users/{test_user.id}', headers=other_headers, json={'firstName': 'x'})
        assert response.status_code == 403

    def test_admin_can_update_any_user(self, client, test_user, admin_headers):
        response = client.patch(f'/api/users/{test_user.id}', headers=admin_headers, json={'address': '부산'})
        assert response.status_code == 200
        assert response.get_json()['address'] == '부산'

    def test_duplicate_email_rejected(self, client, test_user, other_user, user_headers):
        response = client.patch(f'/api/users/{test_user.id}', headers=user_headers,
                                json={'email': 'other@example.com'})
        assert response.status_code == 400

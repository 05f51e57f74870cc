"""
User Model

FLOW OVERVIEW
- User holds login credentials and the shipping profile of a shopper.
- is_administrator: admin flag, or the reserved `admin` username.
- find_by_login(identifier): login accepts either a username or an email.
"""

from datetime import datetime
from .database import db
from .utils import isoformat

ADMIN_USERNAME = 'admin'


class User(db.Model):
    """Registered shopper, seller owner or administrator"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(30), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(50))
    last_name = db.Column(db.String(50))
    phone = db.Column(db.String(20))
    address = db.Column(db.String(255))
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __init__(self, username, email, password_hash, **fields):
        """Initialize a user after validating the identifying fields"""
        # Import validators here to avoid circular imports
        from ..utils.validators import validate_username, validate_email

        username_validation = validate_username(username)
        if not username_validation.is_valid:
            raise ValueError(username_validation.error_message)

        email_validation = validate_email(email)
        if not email_validation.is_valid:
            raise ValueError(email_validation.error_message)

        self.username = username_validation.sanitized_value
        self.email = email_validation.sanitized_value
        self.password_hash = password_hash
        self.is_admin = bool(fields.pop('is_admin', False))
        for key, value in fields.items():
            setattr(self, key, value)

    def __repr__(self):
        return f'<User {self.username}>'

    @property
    def is_administrator(self):
        return bool(self.is_admin) or self.username == ADMIN_USERNAME

    @property
    def display_name(self):
        full_name = ' '.join(part for part in (self.last_name, self.first_name) if part)
        return full_name or self.username

    def to_dict(self):
        """Public representation; never includes the password hash."""
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'phone': self.phone,
            'address': self.address,
            'isAdmin': self.is_administrator,
            'createdAt': isoformat(self.created_at),
        }

    @classmethod
    def find_by_login(cls, identifier):
        """Look up a user by username, falling back to email."""
        identifier = (identifier or '').strip()
        if not identifier:
            return None
        user = cls.query.filter_by(username=identifier).first()
        if user is None:
            user = cls.query.filter_by(email=identifier.lower()).first()
        return user

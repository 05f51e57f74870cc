"""
Application Configuration

FLOW OVERVIEW
- Config.__init__
  • Reads FLASK_ENV to select which .env file to load (dev/prod). Testing bypasses file load.
- Properties expose configuration values, defaulting to sensible development-safe defaults.
- APP_DEFAULTS
  • Storefront business settings applied with setdefault, so a test config dict
    only has to name what it overrides.
"""

import os
from dotenv import load_dotenv


# Shop settings every app instance needs, whichever config source is used
APP_DEFAULTS = {
    'JWT_EXPIRES_DAYS': 7,
    'FREE_SHIPPING_THRESHOLD': 50000,
    'SHIPPING_FEE': 3000,
    'LOW_STOCK_THRESHOLD': 5,
    'PAYMENT_TIMEOUT': 10,
    'APP_URL': 'http://localhost:5000',
    'TOSS_CLIENT_KEY': None,
    'TOSS_SECRET_KEY': None,
    'TOSS_API_URL': 'https://api.tosspayments.com/v1',
    'KAKAO_ADMIN_KEY': None,
    'KAKAO_CID': 'TC0ONETIME',
    'KAKAO_API_URL': 'https://kapi.kakao.com/v1',
    'AUTH_COOKIE_NAME': 'token',
    'AUTH_COOKIE_SECURE': False,
}


class Config:
    """Base configuration class"""

    def __init__(self):
        # Load environment variables based on FLASK_ENV
        env_file = os.getenv('FLASK_ENV', 'development')
        if env_file == 'testing':
            # For testing, don't load config files, use environment variables directly
            pass
        elif env_file == 'production':
            load_dotenv('config.prod.env')
        else:
            load_dotenv('config.env')  # Default to development

    @property
    def SECRET_KEY(self):
        """Application secret key"""
        return os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        """Database connection URI"""
        return os.getenv('DATABASE_URL', 'sqlite:///allthatprinting.db')

    @property
    def SQLALCHEMY_TRACK_MODIFICATIONS(self):
        return False

    @property
    def MAIL_SERVER(self):
        """Mail server hostname"""
        return os.getenv('MAIL_SERVER', 'smtp.gmail.com')

    @property
    def MAIL_PORT(self):
        return int(os.getenv('MAIL_PORT', 587))

    @property
    def MAIL_USE_TLS(self):
        return os.getenv('MAIL_USE_TLS', 'True').lower() == 'true'

    @property
    def MAIL_USE_SSL(self):
        return os.getenv('MAIL_USE_SSL', 'False').lower() == 'true'

    @property
    def MAIL_USERNAME(self):
        return os.getenv('MAIL_USERNAME')

    @property
    def MAIL_PASSWORD(self):
        return os.getenv('MAIL_PASSWORD')

    @property
    def MAIL_DEFAULT_SENDER(self):
        """Default sender email address"""
        return os.getenv('MAIL_DEFAULT_SENDER', 'no-reply@allthatprinting.co.kr')

    @property
    def JWT_SECRET_KEY(self):
        """JWT signing secret"""
        return os.getenv('JWT_SECRET_KEY', 'jwt-secret-key-change-in-production')

    @property
    def JWT_EXPIRES_DAYS(self):
        """Login token lifetime in days"""
        return int(os.getenv('JWT_EXPIRES_DAYS', 7))

    @property
    def AUTH_COOKIE_SECURE(self):
        """Whether the auth cookie is HTTPS only"""
        return os.getenv('FLASK_ENV') == 'production'

    @property
    def APP_URL(self):
        """Public base URL, used for payment redirect URLs"""
        return os.getenv('APP_URL', 'http://localhost:5000')

    @property
    def TOSS_CLIENT_KEY(self):
        return os.getenv('TOSS_CLIENT_KEY')

    @property
    def TOSS_SECRET_KEY(self):
        """Toss Payments secret key (Basic auth username)"""
        return os.getenv('TOSS_SECRET_KEY')

    @property
    def KAKAO_ADMIN_KEY(self):
        """KakaoPay admin key"""
        return os.getenv('KAKAO_ADMIN_KEY')

    @property
    def KAKAO_CID(self):
        """KakaoPay merchant id; TC0ONETIME is the shared test merchant"""
        return os.getenv('KAKAO_CID', 'TC0ONETIME')

    @property
    def FREE_SHIPPING_THRESHOLD(self):
        """Order subtotal (won) from which shipping is free"""
        return int(os.getenv('FREE_SHIPPING_THRESHOLD', 50000))

    @property
    def SHIPPING_FEE(self):
        return int(os.getenv('SHIPPING_FEE', 3000))

    @property
    def LOW_STOCK_THRESHOLD(self):
        return int(os.getenv('LOW_STOCK_THRESHOLD', 5))

    @property
    def PAYMENT_TIMEOUT(self):
        """Timeout in seconds for payment gateway calls"""
        return float(os.getenv('PAYMENT_TIMEOUT', 10))

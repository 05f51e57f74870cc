#!/usr/bin/env python3
"""
AllThatPrinting application entry point.

This module selects configuration based on environment variables, creates the
Flask application via `create_app`, and creates the tables for in-memory
databases. When executed directly, it runs the development server. In
production, a WSGI server should import `app` from this module.

Environment variables of interest:
- FLASK_ENV: if set to 'testing', enables in-memory DB and testing flags.
- DATABASE_URL: if set to 'sqlite:///:memory:' forces in-memory DB init.
- SECRET_KEY, JWT_SECRET_KEY, mail and payment settings: consumed by `create_app`.
"""

import os
from allthatprinting import create_app
from allthatprinting.models import db

# Create app instance
if os.getenv('FLASK_ENV') == 'testing':
    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': os.getenv('DATABASE_URL', 'sqlite:///:memory:'),
        'SECRET_KEY': os.getenv('SECRET_KEY', 'test-secret-key'),
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'test-jwt-secret-key'),
        'MAIL_SERVER': os.getenv('MAIL_SERVER', 'localhost'),
        'MAIL_PORT': int(os.getenv('MAIL_PORT', 587)),
        'MAIL_USE_TLS': os.getenv('MAIL_USE_TLS', 'False').lower() == 'true',
        'MAIL_USE_SSL': os.getenv('MAIL_USE_SSL', 'False').lower() == 'true',
        'MAIL_USERNAME': os.getenv('MAIL_USERNAME', 'test@example.com'),
        'MAIL_PASSWORD': os.getenv('MAIL_PASSWORD', 'test-password'),
        'MAIL_DEFAULT_SENDER': os.getenv('MAIL_DEFAULT_SENDER', 'test@example.com'),
    }
    app = create_app(test_config)
else:
    app = create_app()

print("🚀 Starting AllThatPrinting server...")
if app.config["SQLALCHEMY_DATABASE_URI"] == "sqlite:///:memory:":
    print("🧪 Running with in-memory database")
with app.app_context():
    db.create_all()
    print("📊 Database tables ready")

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)

"""
Application settings and configuration

Values are read from the environment; `app.py` loads `.env` first.
"""
import os
from datetime import timedelta


def _env_flag(name: str, default: str = 'false') -> bool:
    return (os.getenv(name) or default).strip().lower() in {'1', 'true', 'yes', 'on'}


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name) or default
    return tuple(s.strip().lower() for s in raw.split(',') if s.strip())


class Config:
    """Base configuration"""
    SECRET_KEY = os.getenv('SECRET_KEY', 'marketplace-refunds-secret-key')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'marketplace-refunds-jwt-secret-key')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=8)

    # CORS Settings
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Application Settings
    APP_NAME = 'Marketplace Refunds API'
    APP_VERSION = '1.0.0'
    DEBUG = False
    TESTING = False

    # Refund workflow
    REFUND_ENFORCE_ORDER_TOTAL = _env_flag('REFUND_ENFORCE_ORDER_TOTAL', 'true')
    REFUND_ELIGIBLE_ORDER_STATUSES = _env_list('REFUND_ELIGIBLE_ORDER_STATUSES', 'delivered')
    REFUND_PAGE_SIZE_DEFAULT = int(os.getenv('REFUND_PAGE_SIZE_DEFAULT', 10))
    REFUND_PAGE_SIZE_MAX = int(os.getenv('REFUND_PAGE_SIZE_MAX', 100))

    # Razorpay (refund settlement)
    RAZORPAY_KEY_ID = os.getenv('RAZORPAY_KEY_ID', '')
    RAZORPAY_KEY_SECRET = os.getenv('RAZORPAY_KEY_SECRET', '')
    RAZORPAY_API_BASE = os.getenv('RAZORPAY_API_BASE', 'https://api.razorpay.com/v1')
    RAZORPAY_TIMEOUT_SECONDS = int(os.getenv('RAZORPAY_TIMEOUT_SECONDS', 20))

    # Notification email (SMTP)
    SMTP_HOST = os.getenv('SMTP_HOST', '')
    SMTP_PORT = int(os.getenv('SMTP_PORT', 587))
    SMTP_USERNAME = os.getenv('SMTP_USERNAME', '')
    SMTP_PASSWORD = os.getenv('SMTP_PASSWORD', '')
    SMTP_FROM = os.getenv('SMTP_FROM', '')
    SMTP_USE_TLS = _env_flag('SMTP_USE_TLS', 'true')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_ECHO = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SQLALCHEMY_ECHO = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ECHO = False
    JWT_SECRET_KEY = 'testing-jwt-secret-key-with-enough-length'
    REFUND_ENFORCE_ORDER_TOTAL = True
    REFUND_ELIGIBLE_ORDER_STATUSES = ('delivered',)
    RAZORPAY_KEY_ID = 'rzp_test_key'
    RAZORPAY_KEY_SECRET = 'rzp_test_secret'
    SMTP_HOST = ''


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get configuration based on environment"""
    env = os.getenv('FLASK_ENV', 'development')
    return config.get(env, config['default'])

"""Configuration module for Flask application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '1') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Tokens (JWT). Not meant to be secure, the service is a test fixture.
    JWT_SECRET = os.getenv('JWT_SECRET', 'sauce-secret-2025-super-secure-key-change-in-prod')
    JWT_ALGORITHM = 'HS256'
    JWT_ACCESS_EXPIRES_SECONDS = int(os.getenv('JWT_ACCESS_EXPIRES_SECONDS', 24 * 60 * 60))
    JWT_REFRESH_EXPIRES_SECONDS = int(os.getenv('JWT_REFRESH_EXPIRES_SECONDS', 7 * 24 * 60 * 60))
    REFRESH_COOKIE_NAME = 'refreshToken'
    REFRESH_COOKIE_SECURE = os.getenv('REFRESH_COOKIE_SECURE', 'false').lower() == 'true'

    # Commerce
    TAX_RATE = os.getenv('TAX_RATE', '0.08')
    MAX_STOCK = int(os.getenv('MAX_STOCK', '10'))
    MAX_NEW_PRODUCT_STOCK = int(os.getenv('MAX_NEW_PRODUCT_STOCK', '100'))
    COUPONS = {
        'SAVE20': '0.20',
        'TEST50': '0.50',
    }
    IMAGE_BASE_URL = os.getenv('IMAGE_BASE_URL', 'https://www.saucedemo.com/img')
    BROKEN_IMAGE_NAME = 'problem-user.jpg'

    # Injected latency (seconds) for quirky identities
    LOGIN_DELAY_SECONDS = float(os.getenv('LOGIN_DELAY_SECONDS', '2.5'))
    INVENTORY_DELAY_SECONDS = float(os.getenv('INVENTORY_DELAY_SECONDS', '3.0'))
    CHECKOUT_FAILURE_DELAY_SECONDS = float(os.getenv('CHECKOUT_FAILURE_DELAY_SECONDS', '2.0'))

    # Rate limiting (in-memory, per client address)
    RATE_LIMIT_ENABLED = os.getenv('RATE_LIMIT_ENABLED', 'true').lower() == 'true'
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv('RATE_LIMIT_WINDOW_SECONDS', 15 * 60))
    RATE_LIMIT_ANONYMOUS = int(os.getenv('RATE_LIMIT_ANONYMOUS', '100'))
    RATE_LIMIT_AUTHENTICATED = int(os.getenv('RATE_LIMIT_AUTHENTICATED', '500'))
    RATE_LIMIT_ADMIN = int(os.getenv('RATE_LIMIT_ADMIN', '1000'))
    RATE_LIMIT_AUTH_ENDPOINTS = int(os.getenv('RATE_LIMIT_AUTH_ENDPOINTS', '10'))
    RATE_LIMIT_AUTH_PATHS = ('/api/login', '/api/register', '/api/refresh')


class TestConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    DEBUG = False
    LOGIN_DELAY_SECONDS = 0.0
    INVENTORY_DELAY_SECONDS = 0.0
    CHECKOUT_FAILURE_DELAY_SECONDS = 0.0
    RATE_LIMIT_ENABLED = False

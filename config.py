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

    # Session Configuration (Production-safe defaults)
    SESSION_COOKIE_SECURE = os.getenv('SESSION_COOKIE_SECURE', 'false').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv('SESSION_COOKIE_SAMESITE', 'Lax')
    PERMANENT_SESSION_LIFETIME = 86400  # 24 hours

    PREFERRED_URL_SCHEME = os.getenv('PREFERRED_URL_SCHEME', 'http')

    # REST backend
    BACKEND_API_URL = os.getenv('BACKEND_API_URL', 'http://localhost:5000/api')
    BACKEND_TIMEOUT = float(os.getenv('BACKEND_TIMEOUT', '10'))  # seconds
    CATALOG_PAGE_SIZE = int(os.getenv('CATALOG_PAGE_SIZE', '1000'))
    SALES_PAGE_SIZE = int(os.getenv('SALES_PAGE_SIZE', '20'))

    # Business Information (receipts)
    BUSINESS_NAME = os.getenv('BUSINESS_NAME', 'Champion Market')
    CURRENCY_LABEL = os.getenv('CURRENCY_LABEL', 'CFA')

    # Redis Cache Configuration
    # Sales listings, daily stats and per-draft product catalogs
    REDIS_URL = os.getenv('REDIS_URL', 'redis://redis:6379/0')
    CACHE_ENABLED = os.getenv('CACHE_ENABLED', 'true').lower() == 'true'
    CACHE_DEFAULT_TTL = int(os.getenv('CACHE_DEFAULT_TTL', '60'))  # seconds
    CACHE_SALES_TTL = int(os.getenv('CACHE_SALES_TTL', '30'))
    CACHE_CATALOG_TTL = int(os.getenv('CACHE_CATALOG_TTL', '3600'))
    CACHE_KEY_PREFIX = os.getenv('CACHE_KEY_PREFIX', 'market')

    # Error tracking (only used when ENV is production)
    SENTRY_DSN = os.getenv('SENTRY_DSN')

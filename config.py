"""Application configuration profiles."""
from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def database_uri(environ) -> str:
    """SQLAlchemy URL from 'DATABASE_URL', or a SQLite file beside the app."""
    return environ.get('DATABASE_URL') or f"sqlite:///{os.path.join(BASE_DIR, 'library.db')}"


DEFAULT_DB_URI = database_uri(os.environ)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


class BaseConfig:
    SQLALCHEMY_DATABASE_URI = DEFAULT_DB_URI
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    STORE_TIMEOUT = float(os.environ.get('STORE_TIMEOUT', '5'))
    HOST = os.environ.get('HOST', '127.0.0.1')
    PORT = int(os.environ.get('PORT', '3000'))
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    RATELIMIT_ENABLED = _env_flag('RATELIMIT_ENABLED', True)
    RATELIMIT_MAX = int(os.environ.get('RATELIMIT_MAX', '100'))
    RATELIMIT_WINDOW = int(os.environ.get('RATELIMIT_WINDOW', str(15 * 60)))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    SHOW_ERROR_DETAILS = False


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SHOW_ERROR_DETAILS = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    RATELIMIT_ENABLED = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'WARNING')


config_by_name = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}

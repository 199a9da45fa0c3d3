"""
Environment-aware configuration.
Every secret has a development fallback; set real values in production.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    # Keep a copy of env for visibility
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    PORT = int(os.getenv("PORT", "8080"))

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///digital-library.db")
    SQL_ECHO = _flag("SQL_ECHO")

    # Tokens: access and refresh use different secrets
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", os.getenv("JWT_SECRET", "supersecretkey"))
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", "refreshsupersecretkey")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES", "3600")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES", "604800")))
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "digital-library-api")

    # Refresh token cookie
    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refreshToken")
    REFRESH_COOKIE_SECURE = _flag("REFRESH_COOKIE_SECURE", "true")
    REFRESH_COOKIE_SAMESITE = "Strict"


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class ProductionConfig(BaseConfig):
    DEBUG = False


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    SQL_ECHO = False
    ACCESS_TOKEN_SECRET = "test-access-secret"
    REFRESH_TOKEN_SECRET = "test-refresh-secret"
    LOG_LEVEL = "WARNING"


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/test).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig

import os
from decimal import Decimal


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ("1", "true", "yes", "on")


class Config:
    # Secret key for sessions / JWT
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret")

    # Database connection
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///rentdesk.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    API_PREFIX = "/api"

    # Comma-separated extra origins on top of the local dev servers
    CORS_ALLOWED_ORIGINS = os.environ.get("CORS_ALLOWED_ORIGINS", "")

    # Ledger / notice policy
    DEFAULT_JURISDICTION = os.environ.get("DEFAULT_JURISDICTION", "CA")
    ALLOW_MULTIPLE_ACTIVE_NOTICES = _env_flag("ALLOW_MULTIPLE_ACTIVE_NOTICES", "true")
    LATE_FEE_AMOUNT = Decimal(os.environ.get("LATE_FEE_AMOUNT", "50.00"))


class ProductionConfig(Config):
    SECRET_KEY = os.environ.get("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)

    @classmethod
    def validate(cls):
        if not cls.SECRET_KEY:
            raise ValueError("SECRET_KEY environment variable must be set")
        if not cls.SQLALCHEMY_DATABASE_URI:
            raise ValueError("DATABASE_URL environment variable must be set")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "WARNING"
    ALLOW_MULTIPLE_ACTIVE_NOTICES = True

"""Configuration objects for the TheraLink application."""
from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Type

basedir = Path(__file__).resolve().parent


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Base configuration shared by all environments."""

    SQLALCHEMY_DATABASE_URI: str = os.getenv("DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key")

    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret-key")
    JWT_TOKEN_LOCATION: list[str] = ["cookies"]
    JWT_COOKIE_SECURE: bool = _env_flag("JWT_COOKIE_SECURE", "false")
    JWT_COOKIE_SAMESITE: str = os.getenv("JWT_COOKIE_SAMESITE", "Lax")
    JWT_COOKIE_CSRF_PROTECT: bool = _env_flag("JWT_COOKIE_CSRF_PROTECT", "true")
    JWT_ACCESS_TOKEN_EXPIRES: timedelta = timedelta(
        hours=int(os.getenv("JWT_ACCESS_TOKEN_HOURS", "24"))
    )

    SEED_DEMO_DATA: bool = _env_flag("SEED_DEMO_DATA", "true")
    PRICE_RANGE_MIN: int = int(os.getenv("PRICE_RANGE_MIN", "50"))
    PRICE_RANGE_MAX: int = int(os.getenv("PRICE_RANGE_MAX", "300"))
    WALLET_AUTH_STATEMENT: str = os.getenv(
        "WALLET_AUTH_STATEMENT",
        "Sign in to TheraLink to book sessions with verified therapists.",
    )

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Expose configuration values for debugging and introspection."""

        return {key: getattr(cls, key) for key in dir(cls) if key.isupper()}


class DevelopmentConfig(Config):
    """Configuration suitable for local development."""

    DEBUG = True


class TestingConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test-secret-key"
    JWT_SECRET_KEY = "test-jwt-secret-key"
    JWT_COOKIE_CSRF_PROTECT = False
    SEED_DEMO_DATA = True


class ProductionConfig(Config):
    """Configuration tailored for production deployments."""

    _db_path = basedir / "theralink.db"
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{_db_path}")
    JWT_COOKIE_SECURE = _env_flag("JWT_COOKIE_SECURE", "true")
    DEBUG = False


CONFIG_MAP: Dict[str, Type[Config]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config(name: str | None) -> Type[Config]:
    """Retrieve the configuration class matching the supplied name."""

    if not name:
        return DevelopmentConfig
    return CONFIG_MAP.get(name.lower(), DevelopmentConfig)

"""
academia/config.py
Runtime configuration

All settings are loaded from environment variables (optionally from a .env
file in the project root). The application factory receives a Settings
instance, so tests can build one explicitly instead of touching the process
environment.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8000",
]


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


def get_list_env(key: str) -> List[str]:
    raw = os.getenv(key, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    database_url: str = "sqlite+aiosqlite:///./academia.db"
    database_echo: bool = False
    db_pool_timeout: float = 30.0

    jwt_secret_key: str = "dev-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 120

    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))
    rate_limit_enabled: bool = True
    auth_rate_limit: str = "10/minute"

    # "gemini" or "template"
    content_generator: str = "gemini"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    generation_timeout_seconds: float = 30.0

    seed_admin_email: Optional[str] = None
    seed_admin_password: Optional[str] = None
    seed_admin_name: str = "Administrator"

    environment: str = "development"
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls, env_file: Optional[Path] = ENV_FILE) -> "Settings":
        """Build settings from the process environment (and .env if present)."""
        if env_file is not None and env_file.exists():
            load_dotenv(dotenv_path=env_file, override=False)

        defaults = cls()
        return cls(
            database_url=os.getenv("DATABASE_URL", defaults.database_url),
            database_echo=get_bool_env("DATABASE_ECHO", False),
            db_pool_timeout=float(os.getenv("DB_POOL_TIMEOUT", defaults.db_pool_timeout)),
            jwt_secret_key=os.getenv("JWT_SECRET_KEY", defaults.jwt_secret_key),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", defaults.jwt_algorithm),
            access_token_expire_minutes=int(
                os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", defaults.access_token_expire_minutes)
            ),
            allowed_origins=defaults.allowed_origins + get_list_env("ALLOWED_ORIGINS"),
            rate_limit_enabled=get_bool_env("RATE_LIMIT_ENABLED", True),
            auth_rate_limit=os.getenv("AUTH_RATE_LIMIT", defaults.auth_rate_limit),
            content_generator=os.getenv("CONTENT_GENERATOR", defaults.content_generator).lower(),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL", defaults.gemini_model),
            generation_timeout_seconds=float(
                os.getenv("GENERATION_TIMEOUT_SECONDS", defaults.generation_timeout_seconds)
            ),
            seed_admin_email=os.getenv("SEED_ADMIN_EMAIL") or None,
            seed_admin_password=os.getenv("SEED_ADMIN_PASSWORD") or None,
            seed_admin_name=os.getenv("SEED_ADMIN_NAME", defaults.seed_admin_name),
            environment=os.getenv("ENVIRONMENT", defaults.environment),
            log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        )

# todo_api/core/config.py
import os
import re
from urllib.parse import quote_plus

from dotenv import load_dotenv

from todo_api.core.errors import ConfigurationError

DEFAULT_JWT_EXPIRATION_SECONDS = 15 * 60

_DURATION_RE = re.compile(r"^(\d+)\s*([smhd]?)$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def str_to_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


def merge_unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for v in items:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


def parse_duration(value: str | None, default: int = DEFAULT_JWT_EXPIRATION_SECONDS) -> int:
    """
    Parse "900", "30s", "15m", "1h" or "7d" into seconds.
    Empty, malformed or non-positive values fall back to ``default``.
    """
    if value is None:
        return default
    match = _DURATION_RE.match(value.strip().lower())
    if not match:
        return default
    seconds = int(match.group(1)) * _DURATION_UNITS[match.group(2)]
    return seconds if seconds > 0 else default


def parse_positive_int(name: str, value: str | None, default: int) -> int:
    """Parse a positive integer setting; unset or blank means ``default``."""
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e
    if parsed <= 0:
        raise ConfigurationError(f"{name} must be positive, got {parsed}")
    return parsed


class Settings:
    def __init__(self) -> None:
        # Only load .env for local/dev. In prod, env vars come from the service config.
        self.ENV = os.getenv("ENV", "dev").strip().lower()  # dev | prod
        if self.ENV != "prod":
            load_dotenv()

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

        # ----------------------------
        # Database
        # ----------------------------
        self.DATABASE_URL = os.getenv("DATABASE_URL", "").strip()
        self.DB_HOST = os.getenv("DB_HOST", "")
        self.DB_PORT = os.getenv("DB_PORT", "5432")
        self.DB_NAME = os.getenv("DB_NAME", "")
        self.DB_USER = os.getenv("DB_USER", "")
        self.DB_PASSWORD = os.getenv("DB_PASSWORD", "")
        self.DB_SSLMODE = os.getenv("DB_SSLMODE", "prefer").strip().lower()

        # ----------------------------
        # CORS
        # ----------------------------
        dev_defaults = [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
        cors_from_env = parse_csv(os.getenv("CORS_ORIGINS"))
        if self.ENV == "prod":
            self.CORS_ORIGINS = merge_unique(cors_from_env)
        else:
            self.CORS_ORIGINS = merge_unique(cors_from_env + dev_defaults)

        # ----------------------------
        # Session tokens
        # ----------------------------
        self.JWT_SECRET = os.getenv("JWT_SECRET", "")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRATION_SECONDS = parse_duration(os.getenv("JWT_EXPIRATION"))

        # ----------------------------
        # Firebase (identity provider)
        # ----------------------------
        self.FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID", "").strip()
        self.FIREBASE_CLIENT_EMAIL = os.getenv("FIREBASE_CLIENT_EMAIL", "").strip()
        # Service config usually stores the PEM with literal "\n" sequences.
        self.FIREBASE_PRIVATE_KEY = os.getenv("FIREBASE_PRIVATE_KEY", "").replace("\\n", "\n")
        self.FIREBASE_JWKS_CACHE_SECONDS = parse_positive_int(
            "FIREBASE_JWKS_CACHE_SECONDS", os.getenv("FIREBASE_JWKS_CACHE_SECONDS"), 3600
        )

        # ----------------------------
        # Users / debug
        # ----------------------------
        self.DEFAULT_DISPLAY_NAME = os.getenv("DEFAULT_DISPLAY_NAME", "User").strip() or "User"
        self.AUTH_DEBUG_ENABLED = str_to_bool(os.getenv("AUTH_DEBUG_ENABLED"), default=False)

        self._validate_prod()

    def _validate_prod(self) -> None:
        if self.ENV != "prod":
            return

        if not self.DATABASE_URL and not (self.DB_HOST and self.DB_NAME and self.DB_USER):
            raise ConfigurationError("Database must be explicitly configured in prod")
        if self.database_url.startswith("sqlite"):
            raise ConfigurationError("SQLite is not supported in prod")

        cors_joined = ",".join(self.CORS_ORIGINS)
        if "localhost" in cors_joined or "127.0.0.1" in cors_joined:
            raise ConfigurationError("CORS_ORIGINS contains localhost/dev origins in prod")

    @property
    def is_prod(self) -> bool:
        return self.ENV == "prod"

    @property
    def debug_endpoints_enabled(self) -> bool:
        return self.AUTH_DEBUG_ENABLED and not self.is_prod

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_HOST and self.DB_NAME:
            encoded_password = quote_plus(self.DB_PASSWORD)
            return (
                f"postgresql+psycopg2://{self.DB_USER}:{encoded_password}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
                f"?sslmode={self.DB_SSLMODE}"
            )
        return "sqlite:///./todo.db"


settings = Settings()


def require_jwt_secret() -> None:
    if not settings.JWT_SECRET or not settings.JWT_SECRET.strip():
        raise ConfigurationError("JWT_SECRET must be set")


import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")

SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

CORS_ALLOWED_ORIGINS = _get_list(
    os.getenv("CORS_ALLOWED_ORIGINS"),
    default=["http://localhost:5173", "http://localhost:8080"],
)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Monthly trends are bucketed in this zone, never the server's local time.
REPORTING_TIMEZONE = os.getenv("REPORTING_TIMEZONE", "UTC")

CURRENT_SEMESTER = os.getenv("CURRENT_SEMESTER", "3rd")
CURRENT_ACADEMIC_YEAR = os.getenv("CURRENT_ACADEMIC_YEAR", "2024-25")


def get_reporting_timezone() -> ZoneInfo:
    return ZoneInfo(REPORTING_TIMEZONE)


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    try:
        get_reporting_timezone()
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(f"Unknown REPORTING_TIMEZONE: {REPORTING_TIMEZONE}") from exc

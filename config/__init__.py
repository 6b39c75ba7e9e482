import os


def get_settings_module() -> str:
    """Settings module for the APP_ENV environment variable (default: development)."""
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def env_weekend_days(default: str = "5,6") -> tuple[int, ...]:
    """WEEKEND_DAYS as date.weekday() numbers, e.g. "5,6" for Saturday and Sunday."""
    raw = os.getenv("WEEKEND_DAYS", default)
    return tuple(int(part) for part in raw.split(",") if part.strip())

import os


def get_env() -> str:
    """Return the current environment string (e.g. 'dev', 'prod', 'test').
    Defaults to 'dev' if unset.
    """
    return os.getenv("APP_ENV") or os.getenv("ENV") or "dev"


def is_test() -> bool:
    """True if running under pytest (conftest sets APP_ENV=test / TESTING=1)."""
    return get_env().lower() in {"test", "testing"} or os.getenv(
        "TESTING", "0"
    ).lower() in {"1", "true", "yes", "on"}

import os

LOCAL_ENVS = frozenset({"local", "dev", "development", "test"})


def get_app_env() -> str:
    """Return APP_ENV lower-cased, or an empty string when unset."""
    return (os.getenv("APP_ENV", "") or "").strip().lower()


def is_test_env() -> bool:
    """True when running under the test suite (APP_ENV=test)."""
    return get_app_env() == "test"


def is_local_env() -> bool:
    """Local, dev and test runs use SQLite and create tables on startup."""
    return get_app_env() in LOCAL_ENVS

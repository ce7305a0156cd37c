from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url

from app.core.env import LOCAL_ENVS

DEFAULT_SQLITE_URL = "sqlite:///./astro_consult.db"
DRIVER_NORMALIZATION = {
    # async -> sync
    "mysql+asyncmy": "mysql+pymysql",
    "sqlite+aiosqlite": "sqlite",
    "postgresql+asyncpg": "postgresql+psycopg2",
    # mysql connector flavors -> pymysql
    "mysql+mysqlconnector": "mysql+pymysql",
    "mysql+mysqldb": "mysql+pymysql",
    "mysql": "mysql+pymysql",
}


class Settings(BaseSettings):
    db_host: str = Field(default="localhost", validation_alias=AliasChoices("DB_HOST"))
    db_port: int = Field(default=3306, validation_alias=AliasChoices("DB_PORT"))
    db_username: str | None = Field(default=None, validation_alias=AliasChoices("DB_USERNAME"))
    db_password: str | None = Field(default=None, validation_alias=AliasChoices("DB_PASSWORD"))
    db_name: str | None = Field(default="astro_consult", validation_alias=AliasChoices("DB_NAME"))
    database_url: str | None = Field(default=None, validation_alias=AliasChoices("DATABASE_URL"))
    app_env: str | None = Field(default=None, validation_alias=AliasChoices("APP_ENV"))

    jwt_secret_key: str = Field(
        default="change-me-in-production",
        validation_alias=AliasChoices("JWT_SECRET", "JWT_SECRET_KEY"),
    )
    jwt_algorithm: str = Field(default="HS256", validation_alias=AliasChoices("JWT_ALGORITHM"))
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        validation_alias=AliasChoices("ACCESS_TOKEN_EXPIRE_MINUTES"),
    )
    admin_email: str | None = Field(default=None, validation_alias=AliasChoices("ADMIN_EMAIL"))
    admin_password: str | None = Field(default=None, validation_alias=AliasChoices("ADMIN_PASSWORD"))

    booking_horizon_days: int = Field(default=30, validation_alias=AliasChoices("BOOKING_HORIZON_DAYS"))
    cancellation_cutoff_hours: int = Field(default=2, validation_alias=AliasChoices("CANCELLATION_CUTOFF_HOURS"))
    package_catalog_path: str | None = Field(default=None, validation_alias=AliasChoices("PACKAGE_CATALOG_PATH"))
    currency: str = Field(default="INR", validation_alias=AliasChoices("PAYMENT_CURRENCY"))

    razorpay_key_id: str | None = Field(default=None, validation_alias=AliasChoices("RAZORPAY_KEY_ID"))
    razorpay_key_secret: str | None = Field(default=None, validation_alias=AliasChoices("RAZORPAY_KEY_SECRET"))
    razorpay_api_base: str = Field(
        default="https://api.razorpay.com/v1",
        validation_alias=AliasChoices("RAZORPAY_API_BASE"),
    )
    payment_order_ttl_minutes: int = Field(default=30, validation_alias=AliasChoices("PAYMENT_ORDER_TTL_MINUTES"))

    daily_api_key: str | None = Field(default=None, validation_alias=AliasChoices("DAILY_API_KEY"))
    daily_api_base: str = Field(default="https://api.daily.co/v1", validation_alias=AliasChoices("DAILY_API_BASE"))
    video_token_ttl_minutes: int = Field(default=120, validation_alias=AliasChoices("VIDEO_TOKEN_TTL_MINUTES"))

    http_timeout_seconds: float = Field(default=10.0, validation_alias=AliasChoices("HTTP_TIMEOUT_SECONDS"))

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def get_db_url(settings: "Settings") -> str:
    app_env = (settings.app_env or "").strip().lower()

    # 1) An explicit DATABASE_URL always wins
    if settings.database_url:
        return settings.database_url

    # 2) Local and test runs stay on SQLite
    if app_env in LOCAL_ENVS:
        return DEFAULT_SQLITE_URL

    # 3) Build a MySQL URL when DB_* are all present
    if settings.db_username and settings.db_password and settings.db_name:
        return (
            f"mysql+pymysql://{settings.db_username}:"
            f"{settings.db_password}@{settings.db_host}:{settings.db_port}/"
            f"{settings.db_name}"
        )

    # 4) Production without DB settings must fail loudly
    if app_env in {"production", "prod", "staging"}:
        raise ValueError("APP_ENV is set to production/staging but DB configuration is missing")

    return DEFAULT_SQLITE_URL


def normalize_db_url(url: str) -> str:
    """
    Convert async driver URLs to sync equivalents so they can be used
    with the synchronous SQLAlchemy engine/session setup.
    """
    url_obj = make_url(url)
    driver = url_obj.drivername
    if driver in DRIVER_NORMALIZATION:
        url_obj = url_obj.set(drivername=DRIVER_NORMALIZATION[driver])
    return url_obj.render_as_string(hide_password=False)


settings = Settings()

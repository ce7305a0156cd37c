import os
import sys
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine.url import make_url
from alembic import context

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from database import DATABASE_URL, Base  # noqa: E402
import models  # noqa: F401, E402

config = context.config
# database.py already resolved DATABASE_URL / DB_* and normalized the driver.
# Percent signs are escaped for ConfigParser interpolation.
config.set_main_option("sqlalchemy.url", DATABASE_URL.replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _connect_args(url: str) -> dict:
    drivername = make_url(url).drivername
    if drivername.startswith("sqlite"):
        return {"check_same_thread": False}
    ssl_ca = os.getenv("DB_SSL_CA")
    if drivername.startswith("mysql") and ssl_ca:
        return {"ssl": {"ca": ssl_ca}}
    return {}


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        connect_args=_connect_args(DATABASE_URL),
    )

    with connectable.connect() as connection:
        # Batch mode lets ALTERs run on SQLite for local databases.
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import get_db_url, normalize_db_url, settings

logger = logging.getLogger(__name__)

raw_url = get_db_url(settings)
url_obj = make_url(normalize_db_url(raw_url))

# Ensure utf8mb4 for MySQL connections
if url_obj.drivername.startswith("mysql"):
    query = dict(url_obj.query) if url_obj.query else {}
    query.setdefault("charset", "utf8mb4")
    url_obj = url_obj.set(query=query)

DATABASE_URL = url_obj.render_as_string(hide_password=False)

connect_args: dict = {}
if url_obj.drivername.startswith("sqlite"):
    connect_args["check_same_thread"] = False

safe_url = url_obj.set(password="***").render_as_string(hide_password=False)
logger.info("Connecting DB with URL: %s", safe_url)

engine = create_engine(DATABASE_URL, echo=False, future=True, connect_args=connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

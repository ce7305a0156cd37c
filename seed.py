import logging
import os

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.env import is_test_env
from app.core.security import hash_password
from app.models import User
from app.models.enums import UserRole
from database import Base, SessionLocal, engine

logger = logging.getLogger(__name__)


def seed_admin_user() -> None:
    """
    Create the admin account from ADMIN_EMAIL / ADMIN_PASSWORD when it does not exist yet.
    """
    if os.getenv("DISABLE_ADMIN_SEED") or is_test_env():
        logger.info("Admin seed disabled for this environment")
        return

    email = (settings.admin_email or "").strip().lower()
    if not email or not settings.admin_password:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not configured; skipping admin seed")
        return

    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as exc:
        logger.warning("Skipping admin seed; failed to create tables: %s", exc)
        return

    try:
        with SessionLocal() as db:
            user = db.query(User).filter(User.email == email).first()
            if user is None:
                db.add(
                    User(
                        email=email,
                        password_hash=hash_password(settings.admin_password),
                        first_name="Admin",
                        last_name="User",
                        role=UserRole.ADMIN.value,
                    )
                )
                db.commit()
                logger.info("Seeded admin account %s", email)
            elif user.role != UserRole.ADMIN.value:
                user.role = UserRole.ADMIN.value
                db.commit()
                logger.info("Promoted existing account %s to admin", email)
    except SQLAlchemyError as exc:
        logger.warning("Admin seed failed; continuing without fatal error: %s", exc)

from __future__ import annotations

from sqlalchemy import Boolean, Column, Date, String
from sqlalchemy.orm import relationship

from database import Base
from app.models.base import GuidPrimaryKeyMixin, TimestampMixin
from app.models.enums import UserRole


class User(GuidPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.USER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    date_of_birth = Column(Date, nullable=True)
    time_of_birth = Column(String(5), nullable=True)
    gender = Column(String(20), nullable=True)
    birth_city = Column(String(100), nullable=True)
    birth_state = Column(String(100), nullable=True)
    birth_country = Column(String(100), nullable=True)

    appointments = relationship("Appointment", back_populates="user", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


__all__ = ["User"]

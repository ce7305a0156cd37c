from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, String

# FK columns must match the referenced GUID column type exactly on MySQL.
GUID_LENGTH = 36
GUID_TYPE = String(GUID_LENGTH)


def default_uuid() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.utcnow()


class GuidPrimaryKeyMixin:
    id = Column(GUID_TYPE, primary_key=True, default=default_uuid)


class TimestampMixin:
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


__all__ = ["GUID_TYPE", "GUID_LENGTH", "GuidPrimaryKeyMixin", "TimestampMixin", "default_uuid", "utcnow"]

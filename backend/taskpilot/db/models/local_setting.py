"""Key/value row standing in for on-device storage."""
from __future__ import annotations

from sqlalchemy import JSON, Column, DateTime, String, func

from taskpilot.db.base import Base


class LocalSetting(Base):
    __tablename__ = "local_settings"

    key = Column(String(length=128), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

"""Local device storage (SQLAlchemy) utilities and models."""

from taskpilot.db.base import Base
from taskpilot.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]

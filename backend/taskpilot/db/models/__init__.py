"""ORM models exposed for metadata discovery."""
from taskpilot.db.models.local_setting import LocalSetting

__all__ = ["LocalSetting"]

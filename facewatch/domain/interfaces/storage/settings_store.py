"""Key-value settings store interface."""
from abc import ABC, abstractmethod
from typing import Any, Optional

NOTIFICATIONS_ENABLED = "notifications_enabled"
NOTIFICATION_COOLDOWN_SECONDS = "notification_cooldown_seconds"


class SettingsStore(ABC):
    """Interface for persisted user settings."""

    @abstractmethod
    async def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Return the stored value for ``key`` or ``default``."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under ``key``."""
        pass

"""Cooldown tracking for recognition notifications."""
import time
from typing import Callable, Dict, Optional

from facewatch.core.config import settings
from facewatch.core.logging import get_logger
from facewatch.domain.interfaces.storage.settings_store import (
    NOTIFICATION_COOLDOWN_SECONDS,
    NOTIFICATIONS_ENABLED,
    SettingsStore,
)

logger = get_logger(__name__)

Clock = Callable[[], float]


class CooldownTracker:
    """Remembers when each key last fired and rejects repeats inside a window.

    Checking and recording are separate calls: a caller that gets ``True``
    from :meth:`should_notify` records the key itself with :meth:`record`.
    """

    def __init__(self, window_seconds: float, clock: Clock = time.monotonic) -> None:
        if window_seconds < 0:
            raise ValueError("Cooldown window must not be negative")
        self.window_seconds = window_seconds
        self._clock = clock
        self._last_seen: Dict[str, float] = {}

    def should_notify(self, key: str) -> bool:
        now = self._clock()
        last = self._last_seen.get(key)
        allowed = last is None or now - last >= self.window_seconds
        # Prune only after the decision is made.
        self.prune(now)
        return allowed

    def record(self, key: str) -> None:
        self._last_seen[key] = self._clock()

    def forget(self, key: str) -> None:
        self._last_seen.pop(key, None)

    def prune(self, now: Optional[float] = None) -> int:
        """Drop entries older than the window. Returns the number removed."""
        now = self._clock() if now is None else now
        expired = [key for key, seen in self._last_seen.items() if now - seen > self.window_seconds]
        for key in expired:
            del self._last_seen[key]
        return len(expired)

    def clear(self) -> None:
        self._last_seen.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._last_seen

    def __len__(self) -> int:
        return len(self._last_seen)


class NotificationThrottle:
    """Notification-level throttle with persisted enable flag and cooldown override.

    Example:
        ```python
        throttle = NotificationThrottle(settings_store)
        await throttle.load_settings()

        if throttle.should_notify(identity_id, notify_on_recognition):
            throttle.record_notified(identity_id)
            await sink.publish(event)
        ```
    """

    def __init__(
        self,
        settings_store: Optional[SettingsStore] = None,
        cooldown_seconds: float = settings.NOTIFICATION_COOLDOWN_SECONDS,
        clock: Clock = time.monotonic,
    ) -> None:
        """Initialize the throttle.

        Args:
            settings_store: Source of the enable flag and cooldown override
            cooldown_seconds: Window used until an override is loaded
            clock: Returns the current time in seconds
        """
        self._settings_store = settings_store
        self._default_cooldown = cooldown_seconds
        self._tracker = CooldownTracker(cooldown_seconds, clock)
        self.enabled = True

    @property
    def cooldown_seconds(self) -> float:
        return self._tracker.window_seconds

    async def load_settings(self) -> None:
        """Read the enable flag and cooldown override from the settings store."""
        if self._settings_store is None:
            return
        enabled = await self._settings_store.get(NOTIFICATIONS_ENABLED, True)
        cooldown = await self._settings_store.get(NOTIFICATION_COOLDOWN_SECONDS)
        self.enabled = bool(enabled)
        self._tracker.window_seconds = (
            float(cooldown) if cooldown is not None else self._default_cooldown
        )
        logger.info(
            "Loaded notification settings",
            enabled=self.enabled,
            cooldown_seconds=self.cooldown_seconds,
        )

    async def reload_settings(self) -> None:
        await self.load_settings()

    def should_notify(self, key: Optional[str], notify_on_recognition: Optional[bool] = None) -> bool:
        """Decide whether a recognition of ``key`` may produce a notification.

        An explicit ``False`` flag suppresses the notification without
        consulting the cooldown state. Events without a key are never throttled.
        """
        if not self.enabled:
            return False
        if notify_on_recognition is False:
            return False
        if key is None:
            return True
        allowed = self._tracker.should_notify(key)
        if not allowed:
            logger.debug("Skipping notification, cooldown period active", key=key)
        return allowed

    def record_notified(self, key: Optional[str]) -> None:
        if key is not None:
            self._tracker.record(key)

    def clear_notified(self, key: Optional[str]) -> None:
        """Undo :meth:`record_notified` for a notification that was never delivered."""
        if key is not None:
            self._tracker.forget(key)

    def prune(self) -> int:
        return self._tracker.prune()

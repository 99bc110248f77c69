"""Tests for notification cooldown tracking."""
import pytest

from facewatch.domain.interfaces.storage.settings_store import (
    NOTIFICATION_COOLDOWN_SECONDS,
    NOTIFICATIONS_ENABLED,
)
from facewatch.services.notification_throttle import CooldownTracker, NotificationThrottle


class TestCooldownTracker:
    """Test suite for the per-key cooldown window."""

    def test_true_then_false_then_true(self, clock):
        tracker = CooldownTracker(60.0, clock)

        assert tracker.should_notify("alice") is True
        tracker.record("alice")
        clock.advance(30)
        assert tracker.should_notify("alice") is False
        clock.advance(30)
        assert tracker.should_notify("alice") is True

    def test_keys_are_independent(self, clock):
        tracker = CooldownTracker(60.0, clock)
        tracker.record("alice")

        assert tracker.should_notify("bob") is True

    def test_check_does_not_record(self, clock):
        """Should leave recording to the caller."""
        tracker = CooldownTracker(60.0, clock)

        assert tracker.should_notify("alice") is True
        assert tracker.should_notify("alice") is True
        assert "alice" not in tracker

    def test_forget_reopens_window(self, clock):
        tracker = CooldownTracker(60.0, clock)
        tracker.record("alice")

        tracker.forget("alice")
        tracker.forget("bob")

        assert tracker.should_notify("alice") is True

    def test_prunes_after_deciding(self, clock):
        tracker = CooldownTracker(60.0, clock)
        tracker.record("alice")
        tracker.record("bob")
        clock.advance(61)

        assert tracker.should_notify("alice") is True
        assert len(tracker) == 0

    def test_prune_keeps_entries_inside_window(self, clock):
        tracker = CooldownTracker(60.0, clock)
        tracker.record("alice")
        clock.advance(45)
        tracker.record("bob")
        clock.advance(20)

        assert tracker.prune() == 1
        assert "bob" in tracker
        assert "alice" not in tracker

    def test_negative_window(self, clock):
        with pytest.raises(ValueError):
            CooldownTracker(-1.0, clock)


class TestNotificationThrottle:
    """Test suite for the notification-level throttle."""

    def test_cooldown(self, throttle, clock):
        assert throttle.should_notify("identity-1") is True
        throttle.record_notified("identity-1")
        clock.advance(10)
        assert throttle.should_notify("identity-1") is False
        clock.advance(50)
        assert throttle.should_notify("identity-1") is True

    def test_explicit_false_always_suppresses(self, throttle):
        assert throttle.should_notify("identity-1", notify_on_recognition=False) is False
        assert throttle.should_notify("identity-1", notify_on_recognition=None) is True
        assert throttle.should_notify("identity-1", notify_on_recognition=True) is True

    def test_explicit_false_leaves_cooldown_state_alone(self, throttle, clock):
        throttle.record_notified("identity-1")
        clock.advance(120)

        assert throttle.should_notify("identity-1", notify_on_recognition=False) is False
        assert throttle.should_notify("identity-1") is True

    def test_clear_notified(self, throttle):
        throttle.record_notified("identity-1")
        throttle.clear_notified("identity-1")
        throttle.clear_notified(None)

        assert throttle.should_notify("identity-1") is True

    def test_disabled(self, throttle):
        throttle.enabled = False

        assert throttle.should_notify("identity-1", notify_on_recognition=True) is False

    def test_events_without_key_are_not_throttled(self, throttle):
        throttle.record_notified(None)

        assert throttle.should_notify(None) is True
        assert throttle.should_notify(None) is True

    async def test_loads_settings(self, throttle, settings_store):
        await settings_store.set(NOTIFICATIONS_ENABLED, False)
        await settings_store.set(NOTIFICATION_COOLDOWN_SECONDS, 5)

        await throttle.load_settings()

        assert throttle.enabled is False
        assert throttle.cooldown_seconds == 5.0

    async def test_reload_uses_default_when_override_removed(self, throttle, settings_store):
        await settings_store.set(NOTIFICATION_COOLDOWN_SECONDS, 5)
        await throttle.load_settings()
        settings_store.values.clear()

        await throttle.reload_settings()

        assert throttle.enabled is True
        assert throttle.cooldown_seconds == 60.0

    async def test_override_changes_window(self, throttle, settings_store, clock):
        await settings_store.set(NOTIFICATION_COOLDOWN_SECONDS, 5)
        await throttle.load_settings()

        throttle.record_notified("identity-1")
        clock.advance(5)
        assert throttle.should_notify("identity-1") is True

    def test_without_settings_store(self, clock):
        throttle = NotificationThrottle(cooldown_seconds=1.0, clock=clock)
        throttle.record_notified("face-1")
        clock.advance(1)

        assert throttle.should_notify("face-1") is True
        assert throttle.prune() == 0

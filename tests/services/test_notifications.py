"""Tests for recognition notification dispatch."""
import pytest
from fakes import make_face

from facewatch.domain.entities.notification import RecognitionEvent
from facewatch.domain.value_objects.recognition import RecognitionNotice


def notice(key="identity-1", notify=None, face_id="face-1", name="Alice"):
    return RecognitionNotice(
        key=key,
        notify_on_recognition=notify,
        event=RecognitionEvent(face_id=face_id, identity_id=key, name=name),
    )


class TestHandle:
    """Test suite for turning recognition notices into events."""

    async def test_publishes_event(self, notifications, notification_sink):
        event = await notifications.handle(notice())

        assert event.id is not None
        assert event.name == "Alice"
        assert notification_sink.events == [event]

    async def test_cooldown_suppresses_repeats(self, notifications, notification_sink, clock):
        await notifications.handle(notice())
        clock.advance(30)
        assert await notifications.handle(notice()) is None
        clock.advance(30)
        assert await notifications.handle(notice()) is not None

        assert len(notification_sink.events) == 2

    async def test_explicit_false_never_publishes(self, notifications, notification_sink, clock):
        for _ in range(3):
            assert await notifications.handle(notice(notify=False)) is None
            clock.advance(120)

        assert notification_sink.events == []

    async def test_different_keys_notify_independently(self, notifications, notification_sink):
        await notifications.handle(notice(key="identity-1"))
        await notifications.handle(notice(key="identity-2", name="Bob"))

        assert [event.name for event in notification_sink.events] == ["Alice", "Bob"]

    async def test_disabled_notifications(self, notifications, notification_sink):
        notifications.throttle.enabled = False

        assert await notifications.handle(notice()) is None
        assert notification_sink.events == []

    async def test_sink_failure_is_not_raised(self, notifications, notification_sink):
        notification_sink.fail_publish = True

        assert await notifications.handle(notice()) is None

    async def test_failed_publish_does_not_start_cooldown(self, notifications, notification_sink):
        """Should let the next recognition retry after the sink failed."""
        notification_sink.fail_publish = True
        assert await notifications.handle(notice()) is None

        notification_sink.fail_publish = False
        event = await notifications.handle(notice())

        assert event is not None
        assert notification_sink.events == [event]

    async def test_subscribers_receive_events(self, notifications):
        received = []
        unsubscribe = notifications.subscribe(received.append)

        await notifications.handle(notice(key="identity-1"))
        unsubscribe()
        await notifications.handle(notice(key="identity-2"))

        assert [event.identity_id for event in received] == ["identity-1"]


class TestFeed:
    async def test_unread_newest_first_and_mark_read(self, notifications):
        first = await notifications.handle(notice(key="identity-1"))
        second = await notifications.handle(notice(key="identity-2"))

        assert [e.id for e in await notifications.list_unread()] == [second.id, first.id]

        assert await notifications.mark_as_read(first.id) is True
        assert [e.id for e in await notifications.list_unread()] == [second.id]
        assert await notifications.mark_as_read("missing") is False

    async def test_mark_all_as_read(self, notifications):
        await notifications.handle(notice(key="identity-1"))
        await notifications.handle(notice(key="identity-2"))

        assert await notifications.mark_all_as_read() == 2
        assert await notifications.list_unread() == []
        assert await notifications.mark_all_as_read() == 0


class TestHistory:
    """Test suite for per-face and per-person recognition history."""

    async def test_face_history(self, notifications, notification_sink):
        await notification_sink.publish(RecognitionEvent(face_id="face-1", name="Alice"))
        await notification_sink.publish(RecognitionEvent(face_id="face-2", name="Bob"))

        history = await notifications.history("face-1", kind="face")

        assert [event.name for event in history] == ["Alice"]

    async def test_person_history_covers_all_faces(self, notifications, notification_sink, gallery):
        identity_id, first = await gallery.create_identity_with_face(make_face([0.0, 0.0], name="Alice"))
        second = await gallery.add_face(identity_id, make_face([0.1, 0.0]))
        for face_id in (first, second, "other-face"):
            await notification_sink.publish(RecognitionEvent(face_id=face_id, name="x"))

        history = await notifications.history(identity_id, kind="person")

        assert [event.face_id for event in history] == [second, first]

    async def test_history_limit(self, notifications, notification_sink):
        for _ in range(5):
            await notification_sink.publish(RecognitionEvent(face_id="face-1", name="Alice"))

        assert len(await notifications.history("face-1", limit=3)) == 3

    async def test_person_without_faces(self, notifications):
        assert await notifications.history("missing", kind="person") == []

    async def test_unknown_kind(self, notifications):
        with pytest.raises(ValueError):
            await notifications.history("face-1", kind="camera")

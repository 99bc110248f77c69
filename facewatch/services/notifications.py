"""Recognition notification dispatch and history."""
from typing import Callable, List, Optional

from facewatch.core.config import settings
from facewatch.core.exceptions import PersistenceError
from facewatch.core.logging import get_logger
from facewatch.domain.entities.notification import RecognitionEvent
from facewatch.domain.interfaces.storage.notification_sink import NotificationCallback, NotificationSink
from facewatch.domain.value_objects.recognition import RecognitionNotice
from facewatch.services.gallery import Gallery
from facewatch.services.notification_throttle import NotificationThrottle

logger = get_logger(__name__)


class NotificationService:
    """Consumes recognition notices and turns the permitted ones into events.

    Matching never waits on this service's decisions; the detection loop hands
    over the notices a frame produced and this service applies the notify
    flag, the throttle and the sink.
    """

    def __init__(self, sink: NotificationSink, throttle: NotificationThrottle, gallery: Gallery) -> None:
        """Initialize the notification service.

        Args:
            sink: Persists and broadcasts events
            throttle: Per-key cooldown and global enable flag
            gallery: Used to resolve a person's faces for history queries
        """
        self._sink = sink
        self._throttle = throttle
        self._gallery = gallery

    @property
    def throttle(self) -> NotificationThrottle:
        return self._throttle

    async def handle(self, notice: RecognitionNotice) -> Optional[RecognitionEvent]:
        """Publish the notice's event unless it is suppressed or throttled.

        The key is recorded before the sink is awaited, so a second notice for
        the same key arriving meanwhile is throttled. If the sink fails the key
        is cleared again and the next recognition may retry.

        Returns:
            The stored event, or None if nothing was sent
        """
        if not self._throttle.should_notify(notice.key, notice.notify_on_recognition):
            return None
        self._throttle.record_notified(notice.key)

        try:
            event = await self._sink.publish(notice.event)
        except PersistenceError as e:
            self._throttle.clear_notified(notice.key)
            logger.error("Error sending notification", name=notice.event.name, error=str(e))
            return None

        logger.info("Notification sent", name=event.name, event_id=event.id, key=notice.key)
        return event

    async def list_unread(self) -> List[RecognitionEvent]:
        return await self._sink.list_unread()

    async def mark_as_read(self, event_id: str) -> bool:
        return await self._sink.mark_as_read(event_id)

    async def mark_all_as_read(self) -> int:
        updated = await self._sink.mark_all_as_read()
        logger.info("Marked notifications as read", count=updated)
        return updated

    async def history(self, subject_id: str, kind: str = "face", limit: int = settings.HISTORY_LIMIT) -> List[RecognitionEvent]:
        """Recognition history of a face, or of every face of a person.

        Args:
            subject_id: Face or identity id
            kind: "face" or "person"
            limit: Maximum number of events, newest first
        """
        if kind == "face":
            face_ids = [subject_id]
        elif kind == "person":
            face_ids = [face.id for face in await self._gallery.list_faces(subject_id)]
        else:
            raise ValueError(f"Unknown history kind: {kind}")

        if not face_ids:
            return []
        return await self._sink.list_for_faces(face_ids, limit)

    def subscribe(self, callback: NotificationCallback) -> Callable[[], None]:
        return self._sink.subscribe(callback)

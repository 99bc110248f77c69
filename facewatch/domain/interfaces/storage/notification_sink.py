"""Notification sink interface for recognition events."""
from abc import ABC, abstractmethod
from typing import Callable, List

from ...entities.notification import RecognitionEvent

NotificationCallback = Callable[[RecognitionEvent], None]


class NotificationSink(ABC):
    """Interface for persisting and broadcasting recognition events."""

    @abstractmethod
    async def publish(self, event: RecognitionEvent) -> RecognitionEvent:
        """
        Persist a recognition event and broadcast it to subscribers.

        Returns:
            The stored event with its generated id

        Raises:
            PersistenceError: If the event cannot be stored
        """
        pass

    @abstractmethod
    async def list_unread(self) -> List[RecognitionEvent]:
        """Unread events, newest first."""
        pass

    @abstractmethod
    async def mark_as_read(self, event_id: str) -> bool:
        """Mark one event as read. False if it does not exist."""
        pass

    @abstractmethod
    async def mark_all_as_read(self) -> int:
        """Mark every unread event as read and return how many were updated."""
        pass

    @abstractmethod
    async def list_for_faces(self, face_ids: List[str], limit: int) -> List[RecognitionEvent]:
        """Events for any of the given faces, newest first."""
        pass

    @abstractmethod
    def subscribe(self, callback: NotificationCallback) -> Callable[[], None]:
        """
        Register a callback for newly published events.

        Returns:
            A function that removes the subscription
        """
        pass

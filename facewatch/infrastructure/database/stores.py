"""SQLAlchemy implementations of the gallery, notification and settings stores."""
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from facewatch.core.exceptions import PersistenceError
from facewatch.core.logging import get_logger
from facewatch.domain.entities.face import FaceRecord
from facewatch.domain.entities.identity import Identity
from facewatch.domain.entities.notification import RecognitionEvent
from facewatch.domain.interfaces.storage.gallery_store import GalleryStore
from facewatch.domain.interfaces.storage.notification_sink import NotificationCallback, NotificationSink
from facewatch.domain.interfaces.storage.settings_store import SettingsStore
from facewatch.infrastructure.database.session import session_scope
from facewatch.infrastructure.database.unit_of_work import UnitOfWork

logger = get_logger(__name__)


class _SqlStore:
    """Opens one unit of work per call and maps database errors to PersistenceError."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _uow(self, operation: str) -> AsyncGenerator[UnitOfWork, None]:
        try:
            async with session_scope(self._session_factory) as session:
                async with UnitOfWork(session) as uow:
                    yield uow
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Database operation failed: {operation}",
                details={"operation": operation, "error": str(e)},
            ) from e


class SqlGalleryStore(_SqlStore, GalleryStore):
    """Gallery store backed by the persons and stored_faces tables."""

    async def list_identities(self, with_faces: bool = False) -> List[Identity]:
        async with self._uow("list_identities") as uow:
            persons = await uow.persons.list(with_faces=with_faces)
            return [person.to_domain(person.faces if with_faces else None) for person in persons]

    async def get_identity(self, identity_id: str) -> Optional[Identity]:
        async with self._uow("get_identity") as uow:
            person = await uow.persons.get(identity_id, with_faces=True)
            return person.to_domain(person.faces) if person else None

    async def create_identity(self, identity: Identity) -> str:
        async with self._uow("create_identity") as uow:
            person = await uow.persons.create(identity)
            return person.id

    async def update_identity(self, identity: Identity) -> bool:
        async with self._uow("update_identity") as uow:
            return await uow.persons.update(identity)

    async def delete_identity(self, identity_id: str) -> bool:
        async with self._uow("delete_identity") as uow:
            return await uow.persons.delete(identity_id)

    async def list_faces(self, identity_id: Optional[str] = None) -> List[FaceRecord]:
        async with self._uow("list_faces") as uow:
            return [face.to_domain() for face in await uow.faces.list(identity_id)]

    async def get_face(self, face_id: str) -> Optional[FaceRecord]:
        async with self._uow("get_face") as uow:
            face = await uow.faces.get(face_id)
            return face.to_domain() if face else None

    async def add_face(self, face: FaceRecord) -> str:
        async with self._uow("add_face") as uow:
            stored = await uow.faces.create(face)
            return stored.id

    async def update_face(self, face: FaceRecord) -> bool:
        async with self._uow("update_face") as uow:
            return await uow.faces.update(face)

    async def delete_face(self, face_id: str) -> bool:
        async with self._uow("delete_face") as uow:
            return await uow.faces.delete(face_id)


class SqlNotificationSink(_SqlStore, NotificationSink):
    """Notification sink backed by the recognition_notifications table.

    Subscribers are called in-process after each event is committed.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        super().__init__(session_factory)
        self._subscribers: List[NotificationCallback] = []

    async def publish(self, event: RecognitionEvent) -> RecognitionEvent:
        async with self._uow("publish_notification") as uow:
            notification = await uow.notifications.create(event)
        stored = notification.to_domain()
        self._broadcast(stored)
        return stored

    async def list_unread(self) -> List[RecognitionEvent]:
        async with self._uow("list_unread") as uow:
            return [n.to_domain() for n in await uow.notifications.list_unread()]

    async def mark_as_read(self, event_id: str) -> bool:
        async with self._uow("mark_as_read") as uow:
            return await uow.notifications.mark_read(event_id)

    async def mark_all_as_read(self) -> int:
        async with self._uow("mark_all_as_read") as uow:
            return await uow.notifications.mark_all_read()

    async def list_for_faces(self, face_ids: List[str], limit: int) -> List[RecognitionEvent]:
        async with self._uow("list_for_faces") as uow:
            return [n.to_domain() for n in await uow.notifications.list_for_faces(face_ids, limit)]

    def subscribe(self, callback: NotificationCallback) -> Callable[[], None]:
        self._subscribers.append(callback)
        logger.debug("Subscribed to recognition notifications", subscribers=len(self._subscribers))

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)
                logger.debug("Unsubscribed from notifications", subscribers=len(self._subscribers))

        return unsubscribe

    def _broadcast(self, event: RecognitionEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.error("Notification subscriber failed", event_id=event.id, error=str(e), exc_info=True)


class SqlSettingsStore(_SqlStore, SettingsStore):
    """Settings store backed by the app_settings table."""

    async def get(self, key: str, default: Optional[Any] = None) -> Any:
        async with self._uow("get_setting") as uow:
            setting = await uow.settings.get(key)
            return setting.value if setting is not None and setting.value is not None else default

    async def set(self, key: str, value: Any) -> None:
        async with self._uow("set_setting") as uow:
            await uow.settings.set(key, value)
        logger.info("Updated setting", key=key)

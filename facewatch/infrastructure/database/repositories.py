"""Database repositories for the face watch service."""
from typing import Any, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from facewatch.domain.entities.face import FaceRecord
from facewatch.domain.entities.identity import Identity
from facewatch.domain.entities.notification import RecognitionEvent
from facewatch.infrastructure.database.models import AppSetting, Person, RecognitionNotification, StoredFace


class PersonRepository:
    """Repository for person operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository.

        Args:
            session: Database session
        """
        self._session = session

    async def list(self, with_faces: bool = False) -> List[Person]:
        stmt = select(Person).order_by(Person.created_at)
        if with_faces:
            stmt = stmt.options(selectinload(Person.faces))
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get(self, person_id: str, with_faces: bool = True) -> Optional[Person]:
        """Get a person by id.

        Args:
            person_id: Person identifier
            with_faces: Eagerly load the person's faces

        Returns:
            Optional[Person]: Found person or None
        """
        stmt = select(Person).where(Person.id == person_id)
        if with_faces:
            stmt = stmt.options(selectinload(Person.faces))
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, identity: Identity) -> Person:
        person = Person(
            name=identity.name,
            notes=identity.notes,
            notify_on_recognition=identity.notify_on_recognition,
            created_at=identity.created_at,
            updated_at=identity.updated_at,
        )
        self._session.add(person)
        await self._session.flush()
        return person

    async def update(self, identity: Identity) -> bool:
        stmt = (
            update(Person)
            .where(Person.id == identity.id)
            .values(
                name=identity.name,
                notes=identity.notes,
                notify_on_recognition=identity.notify_on_recognition,
                updated_at=identity.updated_at,
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete(self, person_id: str) -> bool:
        """Delete a person and its faces.

        Faces are removed explicitly so the cascade does not depend on the
        database enforcing foreign keys.
        """
        await self._session.execute(delete(StoredFace).where(StoredFace.person_id == person_id))
        result = await self._session.execute(delete(Person).where(Person.id == person_id))
        return result.rowcount > 0


class FaceRepository:
    """Repository for stored face operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list(self, person_id: Optional[str] = None) -> List[StoredFace]:
        stmt = select(StoredFace).order_by(StoredFace.captured_at)
        if person_id is not None:
            stmt = stmt.where(StoredFace.person_id == person_id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def get(self, face_id: str) -> Optional[StoredFace]:
        result = await self._session.execute(select(StoredFace).where(StoredFace.id == face_id))
        return result.scalar_one_or_none()

    async def create(self, face: FaceRecord) -> StoredFace:
        """Create a new face record.

        Args:
            face: Face with embedding and image; ``identity_id`` links it to a person

        Returns:
            StoredFace: Created face record
        """
        stored = StoredFace(
            person_id=face.identity_id,
            name=face.name,
            notes=face.notes,
            descriptor=[float(value) for value in face.embedding],
            image=face.image,
            age=face.age,
            gender=face.gender,
            notify_on_recognition=face.notify_on_recognition,
            captured_at=face.captured_at,
        )
        self._session.add(stored)
        await self._session.flush()
        return stored

    async def update(self, face: FaceRecord) -> bool:
        stmt = (
            update(StoredFace)
            .where(StoredFace.id == face.id)
            .values(
                name=face.name,
                notes=face.notes,
                notify_on_recognition=face.notify_on_recognition,
                person_id=face.identity_id,
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def delete(self, face_id: str) -> bool:
        result = await self._session.execute(delete(StoredFace).where(StoredFace.id == face_id))
        return result.rowcount > 0


class NotificationRepository:
    """Repository for recognition notifications."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, event: RecognitionEvent) -> RecognitionNotification:
        notification = RecognitionNotification(
            face_id=event.face_id,
            person_id=event.identity_id,
            face_name=event.name,
            recognized_at=event.recognized_at,
            image=event.image,
            notes=event.notes,
            is_read=event.is_read,
        )
        self._session.add(notification)
        await self._session.flush()
        return notification

    async def list_unread(self) -> List[RecognitionNotification]:
        stmt = (
            select(RecognitionNotification)
            .where(RecognitionNotification.is_read.is_(False))
            .order_by(RecognitionNotification.recognized_at.desc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_faces(self, face_ids: List[str], limit: int) -> List[RecognitionNotification]:
        stmt = (
            select(RecognitionNotification)
            .where(RecognitionNotification.face_id.in_(face_ids))
            .order_by(RecognitionNotification.recognized_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def mark_read(self, notification_id: str) -> bool:
        stmt = (
            update(RecognitionNotification)
            .where(RecognitionNotification.id == notification_id)
            .values(is_read=True)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def mark_all_read(self) -> int:
        stmt = (
            update(RecognitionNotification)
            .where(RecognitionNotification.is_read.is_(False))
            .values(is_read=True)
        )
        result = await self._session.execute(stmt)
        return result.rowcount


class SettingRepository:
    """Repository for key-value settings."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, key: str) -> Optional[AppSetting]:
        return await self._session.get(AppSetting, key)

    async def set(self, key: str, value: Any) -> AppSetting:
        setting = await self.get(key)
        if setting is None:
            setting = AppSetting(key=key, value=value)
            self._session.add(setting)
        else:
            setting.value = value
        await self._session.flush()
        return setting

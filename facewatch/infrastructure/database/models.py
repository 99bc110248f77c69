"""SQLAlchemy models for the face watch service."""
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from facewatch.domain.entities.face import FaceRecord, utcnow
from facewatch.domain.entities.identity import Identity
from facewatch.domain.entities.notification import RecognitionEvent


def new_id() -> str:
    return str(uuid.uuid4())


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive timestamps read back from databases without time zones."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Person(Base):
    """Identity owning one or more stored faces."""

    __tablename__ = "persons"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notify_on_recognition: Mapped[Optional[bool]] = mapped_column(
        Boolean,
        nullable=True,
        comment="NULL and TRUE permit notifications, FALSE suppresses them"
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    faces: Mapped[List["StoredFace"]] = relationship(
        back_populates="person",
        cascade="all, delete-orphan",
        order_by="StoredFace.captured_at"
    )

    def to_domain(self, faces: Optional[List["StoredFace"]] = None) -> Identity:
        return Identity(
            id=self.id,
            name=self.name,
            notes=self.notes,
            notify_on_recognition=self.notify_on_recognition,
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
            faces=[face.to_domain() for face in faces or []],
        )


class StoredFace(Base):
    """Face record with its embedding, optionally owned by a person."""

    __tablename__ = "stored_faces"
    __table_args__ = (
        Index("idx_stored_faces_person", "person_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    person_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("persons.id", ondelete="CASCADE"),
        nullable=True
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    descriptor: Mapped[List[float]] = mapped_column(
        JSON,
        nullable=False,
        comment="Face embedding as a JSON array of numbers"
    )
    image: Mapped[str] = mapped_column(Text, nullable=False, comment="Encoded image (data URL)")
    age: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    gender: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    notify_on_recognition: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    captured_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    person: Mapped[Optional[Person]] = relationship(back_populates="faces")

    def to_domain(self) -> FaceRecord:
        return FaceRecord(
            id=self.id,
            embedding=self.descriptor,
            image=self.image,
            captured_at=as_utc(self.captured_at),
            name=self.name,
            notes=self.notes,
            identity_id=self.person_id,
            notify_on_recognition=self.notify_on_recognition,
            age=self.age,
            gender=self.gender,
        )


class RecognitionNotification(Base):
    """Recognition event kept for the notification feed and history."""

    __tablename__ = "recognition_notifications"
    __table_args__ = (
        Index("idx_notifications_unread", "is_read", "recognized_at"),
        Index("idx_notifications_face", "face_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    face_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    person_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    face_name: Mapped[str] = mapped_column(String(255), nullable=False)
    recognized_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def to_domain(self) -> RecognitionEvent:
        return RecognitionEvent(
            id=self.id,
            face_id=self.face_id,
            identity_id=self.person_id,
            name=self.face_name,
            recognized_at=as_utc(self.recognized_at),
            image=self.image,
            notes=self.notes,
            is_read=self.is_read,
        )


class AppSetting(Base):
    """Key-value user setting."""

    __tablename__ = "app_settings"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

"""API request and response models."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from facewatch.domain.entities.face import BoundingBox, FaceRecord
from facewatch.domain.entities.identity import Identity
from facewatch.domain.entities.notification import RecognitionEvent
from facewatch.domain.value_objects.recognition import (
    ClusteringOutcome,
    ClusteringResult,
    RecognitionStatus,
    RecognizedFace,
)


class FaceResponse(BaseModel):
    """Stored face as returned by the API (without its embedding)."""
    id: str = Field(..., description="Face identifier")
    name: Optional[str] = None
    notes: Optional[str] = None
    identity_id: Optional[str] = Field(None, description="Owning person, if any")
    notify_on_recognition: Optional[bool] = None
    captured_at: datetime
    image: Optional[str] = Field(None, description="Encoded image (data URL)")
    age: Optional[float] = None
    gender: Optional[str] = None
    embedding_size: int = Field(0, description="Length of the stored embedding")

    @classmethod
    def from_record(cls, face: FaceRecord) -> "FaceResponse":
        return cls(
            id=face.id,
            name=face.name,
            notes=face.notes,
            identity_id=face.identity_id,
            notify_on_recognition=face.notify_on_recognition,
            captured_at=face.captured_at,
            image=face.image,
            age=face.age,
            gender=face.gender,
            embedding_size=int(face.embedding.size) if face.embedding is not None else 0,
        )


class FaceUpdateRequest(BaseModel):
    """Editable fields of a stored face."""
    name: Optional[str] = None
    notes: Optional[str] = None
    notify_on_recognition: Optional[bool] = None


class PersonResponse(BaseModel):
    """Person with its faces."""
    id: str
    name: str
    notes: Optional[str] = None
    notify_on_recognition: Optional[bool] = None
    created_at: datetime
    updated_at: datetime
    face_count: int = 0
    faces: List[FaceResponse] = Field(default_factory=list)

    @classmethod
    def from_identity(cls, identity: Identity) -> "PersonResponse":
        return cls(
            id=identity.id,
            name=identity.name,
            notes=identity.notes,
            notify_on_recognition=identity.notify_on_recognition,
            created_at=identity.created_at,
            updated_at=identity.updated_at,
            face_count=len(identity.faces),
            faces=[FaceResponse.from_record(face) for face in identity.faces],
        )


class PersonUpdateRequest(BaseModel):
    """Editable fields of a person; omitted fields keep their value."""
    name: Optional[str] = Field(None, min_length=1)
    notes: Optional[str] = None
    notify_on_recognition: Optional[bool] = None


class FaceMergeRequest(BaseModel):
    """Merge the path face with another stored face."""
    target_face_id: str = Field(..., description="Face to merge with")


class FaceMergeResponse(BaseModel):
    identity_id: str = Field(..., description="Person both faces now belong to")


class FaceUploadResponse(BaseModel):
    """Result of storing an uploaded face."""
    outcome: ClusteringOutcome
    identity_id: Optional[str] = None
    face_id: Optional[str] = None
    distance: Optional[float] = None

    @classmethod
    def from_result(cls, result: ClusteringResult) -> "FaceUploadResponse":
        return cls(**result.model_dump())


class RecognizedFaceResponse(BaseModel):
    """Live recognition outcome of one detection."""
    status: RecognitionStatus
    name: Optional[str] = None
    notes: Optional[str] = None
    identity_id: Optional[str] = None
    face_id: Optional[str] = None
    distance: Optional[float] = None
    similarity: Optional[float] = Field(None, description="1 - distance, for display")
    saved_face_id: Optional[str] = None
    bounding_box: Optional[BoundingBox] = None
    age: Optional[float] = None
    gender: Optional[str] = None

    @classmethod
    def from_recognized(cls, face: RecognizedFace) -> "RecognizedFaceResponse":
        match = face.match
        return cls(
            status=face.status,
            name=face.name,
            notes=match.candidate.notes if match else None,
            identity_id=match.candidate.identity_id if match else None,
            face_id=match.candidate.face_id if match else None,
            distance=match.distance if match else None,
            similarity=face.similarity,
            saved_face_id=face.saved_face_id,
            bounding_box=face.detection.bounding_box,
            age=face.detection.age,
            gender=face.detection.gender,
        )


class FrameRecognitionResponse(BaseModel):
    faces: List[RecognizedFaceResponse] = Field(default_factory=list)


class NotificationResponse(BaseModel):
    """Recognition event from the notification feed."""
    id: str
    face_id: Optional[str] = None
    identity_id: Optional[str] = None
    name: str
    recognized_at: datetime
    image: Optional[str] = None
    notes: Optional[str] = None
    is_read: bool

    @classmethod
    def from_event(cls, event: RecognitionEvent) -> "NotificationResponse":
        return cls(**event.model_dump())


class MarkAllReadResponse(BaseModel):
    updated: int


class NotificationSettingsModel(BaseModel):
    """User-level notification settings."""
    enabled: bool = True
    cooldown_seconds: float = Field(..., ge=0)

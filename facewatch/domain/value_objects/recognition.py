"""Face recognition value objects."""
from enum import Enum
from typing import Any, List, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from facewatch.domain.entities.face import Detection, FaceRecord, as_embedding
from facewatch.domain.entities.identity import Identity
from facewatch.domain.entities.notification import RecognitionEvent


class Candidate(BaseModel):
    """One stored embedding in the comparison set, with the face and identity it belongs to."""
    face_id: Optional[str] = Field(None, description="Stored face the embedding comes from")
    identity_id: Optional[str] = Field(None, description="Owning identity, None for standalone faces")
    name: Optional[str] = Field(None, description="Display name (identity name wins over face name)")
    notes: Optional[str] = None
    notify_on_recognition: Optional[bool] = None
    embedding: Optional[np.ndarray] = Field(None, description="Reference embedding")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("embedding", mode="before")
    @classmethod
    def validate_embedding(cls, v: Any) -> Optional[np.ndarray]:
        return as_embedding(v)

    @property
    def key(self) -> Optional[str]:
        """Identity id when owned, else the face id."""
        return self.identity_id or self.face_id

    @classmethod
    def from_face(cls, face: FaceRecord, identity: Optional[Identity] = None) -> "Candidate":
        """Build a candidate from a stored face and its owning identity.

        Name and notes come from the identity. An explicit ``False`` notify flag
        on either the identity or the face suppresses notifications; otherwise
        the identity's flag applies.
        """
        if identity is None:
            return cls(
                face_id=face.id,
                identity_id=face.identity_id,
                name=face.name,
                notes=face.notes,
                notify_on_recognition=face.notify_on_recognition,
                embedding=face.embedding,
            )
        return cls(
            face_id=face.id,
            identity_id=identity.id,
            name=identity.name,
            notes=identity.notes,
            notify_on_recognition=(
                False if False in (identity.notify_on_recognition, face.notify_on_recognition)
                else identity.notify_on_recognition
            ),
            embedding=face.embedding,
        )


class MatchResult(BaseModel):
    """Best match of the matcher."""
    candidate: Candidate
    distance: float = Field(..., description="L2 distance to the candidate, lower is closer")

    @property
    def similarity(self) -> float:
        """Display similarity, 1 - distance, not clamped."""
        return 1.0 - self.distance


class RecognitionStatus(str, Enum):
    RECOGNIZED = "recognized"
    UNRECOGNIZED = "unrecognized"
    DISCARDED = "discarded"


class RecognizedFace(BaseModel):
    """Outcome of live recognition for a single detection."""
    detection: Detection
    status: RecognitionStatus
    match: Optional[MatchResult] = None
    saved_face_id: Optional[str] = Field(None, description="Id of the auto-saved unidentified face")

    @property
    def name(self) -> Optional[str]:
        return self.match.candidate.name if self.match else None

    @property
    def similarity(self) -> Optional[float]:
        return self.match.similarity if self.match else None


class RecognitionNotice(BaseModel):
    """Event emitted by live recognition, consumed by notification dispatch."""
    key: str = Field(..., description="Throttle key: identity id, or face id for standalone faces")
    notify_on_recognition: Optional[bool] = None
    event: RecognitionEvent


class FrameRecognition(BaseModel):
    """Result of recognizing every detection in one frame."""
    faces: List[RecognizedFace] = Field(default_factory=list)
    notices: List[RecognitionNotice] = Field(default_factory=list)

    @property
    def recognized(self) -> List[RecognizedFace]:
        return [face for face in self.faces if face.status == RecognitionStatus.RECOGNIZED]


class ClusteringOutcome(str, Enum):
    MERGED = "merged"
    STORED = "stored"
    DISCARDED = "discarded"
    FAILED = "failed"


class ClusteringResult(BaseModel):
    """Terminal state of storage-time clustering for one captured face."""
    outcome: ClusteringOutcome
    identity_id: Optional[str] = None
    face_id: Optional[str] = None
    distance: Optional[float] = None

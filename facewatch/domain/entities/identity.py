"""Identity (person) entity."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from facewatch.domain.entities.face import FaceRecord, utcnow


class Identity(BaseModel):
    """Named cluster of face records believed to belong to one person."""
    id: Optional[str] = Field(None, description="Identifier assigned by the store")
    name: str = Field("Unknown Person", description="Display name")
    notes: Optional[str] = Field(None, description="Free-text notes")
    notify_on_recognition: Optional[bool] = Field(
        None, description="Tri-state: False suppresses notifications, True/None permit them"
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    faces: List[FaceRecord] = Field(default_factory=list, description="Owned face records")

    @classmethod
    def seeded_from(cls, face: FaceRecord) -> "Identity":
        """New identity carrying over the seed face's label and notify flag."""
        return cls(
            name=face.name or "Unknown Person",
            notes=face.notes,
            notify_on_recognition=face.notify_on_recognition,
        )

"""Recognition event entity."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from facewatch.domain.entities.face import utcnow


class RecognitionEvent(BaseModel):
    """A recognized face that passed the notification checks."""
    id: Optional[str] = Field(None, description="Identifier assigned by the notification sink")
    face_id: Optional[str] = Field(None, description="Matched face record")
    identity_id: Optional[str] = Field(None, description="Identity owning the matched face")
    name: str = Field(..., description="Display name of the recognized face")
    recognized_at: datetime = Field(default_factory=utcnow)
    image: Optional[str] = Field(None, description="Snapshot of the frame")
    notes: Optional[str] = None
    is_read: bool = False

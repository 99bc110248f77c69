"""Core face domain entities."""
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Timezone-aware current time used for entity timestamps."""
    return datetime.now(timezone.utc)


def as_embedding(value: Optional[Union[np.ndarray, Sequence[float]]]) -> Optional[np.ndarray]:
    """Convert a sequence of numbers to a read-only float embedding.

    Returns None for missing or empty input so callers can treat both the same way.
    """
    if value is None:
        return None
    array = np.array(value, dtype=np.float64).reshape(-1)
    if array.size == 0:
        return None
    array.setflags(write=False)
    return array


def is_valid_embedding(embedding: Optional[np.ndarray]) -> bool:
    """Check that an embedding is present, non-empty and finite."""
    return (
        embedding is not None
        and embedding.ndim == 1
        and embedding.size > 0
        and bool(np.all(np.isfinite(embedding)))
    )


class BoundingBox(BaseModel):
    """Face bounding box coordinates."""
    left: float = Field(..., description="Left coordinate of the bounding box")
    top: float = Field(..., description="Top coordinate of the bounding box")
    width: float = Field(..., description="Width of the bounding box")
    height: float = Field(..., description="Height of the bounding box")


class Detection(BaseModel):
    """Single face produced by the embedding extractor for one image or frame."""
    embedding: Optional[np.ndarray] = Field(None, description="Face embedding vector")
    image: Optional[str] = Field(None, description="Encoded image of the frame or face crop")
    confidence: Optional[float] = Field(None, description="Detection confidence score")
    bounding_box: Optional[BoundingBox] = Field(None, description="Face location in the image")
    age: Optional[float] = Field(None, description="Estimated age")
    gender: Optional[str] = Field(None, description="Estimated gender")
    expressions: Optional[Dict[str, float]] = Field(None, description="Expression scores")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("embedding", mode="before")
    @classmethod
    def validate_embedding(cls, v: Any) -> Optional[np.ndarray]:
        """Validate and convert embedding to numpy array if needed."""
        return as_embedding(v)


class FaceRecord(BaseModel):
    """Stored face: one embedding and its image, optionally owned by an identity."""
    id: Optional[str] = Field(None, description="Identifier assigned by the store")
    embedding: Optional[np.ndarray] = Field(None, description="Face embedding vector")
    image: Optional[str] = Field(None, description="Encoded image reference (e.g. data URL)")
    captured_at: datetime = Field(default_factory=utcnow, description="Capture time")
    name: Optional[str] = Field(None, description="Free-text label")
    notes: Optional[str] = Field(None, description="Free-text notes")
    identity_id: Optional[str] = Field(None, description="Owning identity, if any")
    notify_on_recognition: Optional[bool] = Field(None, description="Notify when recognized")
    age: Optional[float] = None
    gender: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("embedding", mode="before")
    @classmethod
    def validate_embedding(cls, v: Any) -> Optional[np.ndarray]:
        """Validate and convert embedding to numpy array if needed."""
        return as_embedding(v)

    @property
    def has_valid_embedding(self) -> bool:
        return is_valid_embedding(self.embedding)

    @property
    def is_storable(self) -> bool:
        """A face can only be persisted with both an embedding and an image."""
        return self.has_valid_embedding and bool(self.image)

    @classmethod
    def from_detection(cls, detection: Detection, name: Optional[str] = None) -> "FaceRecord":
        """Create an unsaved face record from an extractor detection.

        Args:
            detection: Detection produced by the embedding extractor
            name: Optional label for the new face

        Returns:
            FaceRecord without an id
        """
        return cls(
            embedding=detection.embedding,
            image=detection.image,
            name=name,
            age=detection.age,
            gender=detection.gender,
        )

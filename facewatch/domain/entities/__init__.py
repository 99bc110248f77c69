"""Domain entities package."""
from .face import BoundingBox, Detection, FaceRecord
from .identity import Identity
from .notification import RecognitionEvent

__all__ = ["BoundingBox", "Detection", "FaceRecord", "Identity", "RecognitionEvent"]

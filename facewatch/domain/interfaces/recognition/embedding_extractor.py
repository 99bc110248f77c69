"""Embedding extractor interface."""
from abc import ABC, abstractmethod
from typing import List, Optional

from ...entities.face import Detection


class EmbeddingExtractor(ABC):
    """Interface for face detection and embedding extraction."""

    @abstractmethod
    async def extract(
        self,
        image_bytes: bytes,
        max_faces: Optional[int] = None,
    ) -> List[Detection]:
        """
        Detect faces and extract their embeddings.

        Args:
            image_bytes: Raw encoded image or video frame
            max_faces: Maximum number of faces to return (None for no limit)

        Returns:
            List of detections, empty if no face was found. Each detection
            carries the encoded source image so it can be stored.

        Raises:
            InvalidImageError: If the image cannot be decoded
        """
        pass

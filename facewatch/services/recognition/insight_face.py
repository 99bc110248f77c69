"""
InsightFace-based implementation of the embedding extractor.

This module turns images and video frames into detections carrying a
normalized face embedding, a JPEG crop of the face and the model's
age/gender estimates. Decoding, inference and encoding run in a worker
thread so the event loop stays responsive.

Example:
    ```python
    extractor = InsightFaceExtractor()

    with open("image.jpg", "rb") as f:
        detections = await extractor.extract(f.read(), max_faces=1)
    ```

Note:
    This implementation uses CPU inference by default. For GPU support,
    modify the providers list in __init__ to include 'CUDAExecutionProvider'.
    L2 thresholds are model specific; tune LIVE_MATCH_THRESHOLD and
    CLUSTER_THRESHOLD when switching models.
"""
import asyncio
import base64
import math
from typing import Any, List, Optional, TypeVar

import cv2
import numpy as np
from insightface.app import FaceAnalysis
from insightface.app.common import Face as InsightFace

from facewatch.core.config import settings
from facewatch.core.exceptions import InvalidImageError, ModelLoadError
from facewatch.core.logging import get_logger
from facewatch.domain.entities.face import BoundingBox, Detection
from facewatch.domain.interfaces.recognition.embedding_extractor import EmbeddingExtractor

logger = get_logger(__name__)

T = TypeVar('T', bound='InsightFaceExtractor')


def encode_data_url(image: np.ndarray, quality: int = 80) -> str:
    """Encode a BGR image as a JPEG data URL."""
    ok, buffer = cv2.imencode(".jpg", image, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    if not ok:
        raise InvalidImageError("Failed to encode image")
    return "data:image/jpeg;base64," + base64.b64encode(buffer.tobytes()).decode("ascii")


class InsightFaceExtractor(EmbeddingExtractor):
    """
    InsightFace-based embedding extractor.

    Attributes:
        model: InsightFace model instance for face analysis
    """

    def __init__(self) -> None:
        """Initialize InsightFace model."""
        try:
            self.model = FaceAnalysis(
                name=settings.MODEL_NAME,
                root=settings.MODEL_CACHE_DIR,
                providers=['CPUExecutionProvider']
            )
            self.model.prepare(ctx_id=0, det_size=(640, 640))
        except Exception as e:
            logger.error("Failed to load InsightFace model", error=str(e), exc_info=True)
            raise ModelLoadError(f"Failed to load InsightFace model: {str(e)}")

    async def __aenter__(self: T) -> T:
        logger.debug("Entering InsightFace extractor context")
        return self

    async def __aexit__(self, exc_type: Optional[type], exc_val: Optional[Exception],
                        exc_tb: Optional[Any]) -> None:
        logger.debug("Cleaning up InsightFace extractor resources")
        if exc_type:
            logger.error(
                "Error occurred during context exit",
                error=str(exc_val),
                exc_info=True
            )
        self.model = None

    def _load_image(self, image_bytes: bytes) -> np.ndarray:
        """Decode image bytes, downscaling images above MAX_IMAGE_PIXELS."""
        if not image_bytes:
            raise InvalidImageError("Empty image")

        img = cv2.imdecode(np.frombuffer(image_bytes, np.uint8), cv2.IMREAD_COLOR)
        if img is None:
            raise InvalidImageError("Failed to decode image")

        height, width = img.shape[:2]
        pixels = width * height
        if pixels > settings.MAX_IMAGE_PIXELS:
            scale = math.sqrt(settings.MAX_IMAGE_PIXELS / pixels)
            new_size = (int(width * scale), int(height * scale))
            logger.info("Resizing large image", original_size=(width, height), new_size=new_size)
            img = cv2.resize(img, new_size, interpolation=cv2.INTER_AREA)
        return img

    def _crop(self, image: np.ndarray, face_data: InsightFace) -> np.ndarray:
        """Cut the face out of the image, clipped to the image bounds."""
        height, width = image.shape[:2]
        left, top, right, bottom = face_data.bbox.astype(int)
        left, top = max(int(left), 0), max(int(top), 0)
        right, bottom = min(int(right), width), min(int(bottom), height)
        if right <= left or bottom <= top:
            return image
        return np.ascontiguousarray(image[top:bottom, left:right])

    def _convert_to_detection(self, face_data: InsightFace, image: np.ndarray) -> Detection:
        """Convert an InsightFace result to a Detection with normalized (0-1) coordinates."""
        height, width = image.shape[:2]
        bbox = face_data.bbox.astype(int)
        bounding_box = BoundingBox(
            left=float(bbox[0] / width),
            top=float(bbox[1] / height),
            width=float((bbox[2] - bbox[0]) / width),
            height=float((bbox[3] - bbox[1]) / height)
        )
        embedding = getattr(face_data, "normed_embedding", None)
        sex = getattr(face_data, "sex", None)
        age = getattr(face_data, "age", None)
        return Detection(
            embedding=embedding,
            image=encode_data_url(self._crop(image, face_data)),
            confidence=float(face_data.det_score),
            bounding_box=bounding_box,
            age=float(age) if age is not None else None,
            gender={"M": "male", "F": "female"}.get(sex),
        )

    async def extract(
        self,
        image_bytes: bytes,
        max_faces: Optional[int] = None,
    ) -> List[Detection]:
        """Detect faces and return them with embeddings, best detections first."""
        return await asyncio.to_thread(self._detect, image_bytes, max_faces)

    def _detect(self, image_bytes: bytes, max_faces: Optional[int]) -> List[Detection]:
        img = self._load_image(image_bytes)
        try:
            faces = self.model.get(img, max_num=0 if max_faces is None else max_faces)
        except Exception as e:
            logger.error("Face processing failed", error=str(e), image_shape=img.shape, exc_info=True)
            raise InvalidImageError(f"Face processing failed: {str(e)}")

        faces = [face for face in faces if float(face.det_score) >= settings.MIN_FACE_CONFIDENCE]
        faces.sort(key=lambda face: float(face.det_score), reverse=True)
        if max_faces is not None:
            faces = faces[:max_faces]

        logger.debug("Face detection results", faces_found=len(faces), max_faces=max_faces)
        return [self._convert_to_detection(face, img) for face in faces]

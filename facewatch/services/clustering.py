"""Live recognition and storage-time clustering of face embeddings."""
import asyncio
from typing import Iterable, List, Optional

from facewatch.core.config import settings
from facewatch.core.exceptions import PersistenceError, ServiceNotInitializedError
from facewatch.core.logging import get_logger
from facewatch.domain.entities.face import Detection, FaceRecord
from facewatch.domain.entities.notification import RecognitionEvent
from facewatch.domain.interfaces.recognition.embedding_extractor import EmbeddingExtractor
from facewatch.domain.value_objects.recognition import (
    Candidate,
    ClusteringOutcome,
    ClusteringResult,
    FrameRecognition,
    RecognitionNotice,
    RecognitionStatus,
    RecognizedFace,
)
from facewatch.services.gallery import Gallery
from facewatch.services.matcher import find_best_match

logger = get_logger(__name__)

UNIDENTIFIED_NAME = "Unidentified Face"
UNIDENTIFIED_NOTES = "Automatically saved"


class ClusteringPolicy:
    """Decides what happens to each detected or captured face.

    Two thresholds apply to the same L2 distance. The live threshold decides
    whether a detection in a video frame shows a known face; it is compared
    against every stored embedding, so any single close face is enough. The
    cluster threshold decides whether a captured face joins an existing
    identity or starts a new one.

    Example:
        ```python
        policy = ClusteringPolicy(gallery)

        frame = await policy.recognize_frame(detections)
        for notice in frame.notices:
            await notifications.handle(notice)

        result = await policy.cluster_face(captured_face)
        ```
    """

    def __init__(
        self,
        gallery: Gallery,
        extractor: Optional[EmbeddingExtractor] = None,
        live_threshold: float = settings.LIVE_MATCH_THRESHOLD,
        cluster_threshold: float = settings.CLUSTER_THRESHOLD,
        comparison_mode: str = settings.CLUSTER_COMPARISON_MODE,
        auto_save_unidentified: bool = settings.AUTO_SAVE_UNIDENTIFIED,
    ) -> None:
        """Initialize the policy.

        Args:
            gallery: Gallery read for candidates and updated on storage
            extractor: Embedding extractor used for uploaded images
            live_threshold: Maximum distance for live recognition
            cluster_threshold: Maximum distance for merging into an identity
            comparison_mode: "all_faces" compares captures against every stored
                embedding, "representative" against one face per identity
            auto_save_unidentified: Store unrecognized live detections as
                standalone faces
        """
        if comparison_mode not in ("all_faces", "representative"):
            raise ValueError(f"Unknown comparison mode: {comparison_mode}")
        self._gallery = gallery
        self._extractor = extractor
        self.live_threshold = live_threshold
        self.cluster_threshold = cluster_threshold
        self.comparison_mode = comparison_mode
        self.auto_save_unidentified = auto_save_unidentified
        # Serializes read-decide-write so one process never double-creates an identity.
        self._write_lock = asyncio.Lock()

    def recognize(self, detections: Iterable[Detection], candidates: List[Candidate]) -> FrameRecognition:
        """Match every detection of a frame against the given candidates.

        Pure: nothing is stored and nothing is sent. Recognized faces produce a
        notice for the notification consumer.
        """
        frame = FrameRecognition()
        for detection in detections:
            if detection.embedding is None:
                frame.faces.append(RecognizedFace(detection=detection, status=RecognitionStatus.DISCARDED))
                continue

            match = find_best_match(detection.embedding, candidates, self.live_threshold)
            if match is None:
                frame.faces.append(RecognizedFace(detection=detection, status=RecognitionStatus.UNRECOGNIZED))
                continue

            candidate = match.candidate
            frame.faces.append(
                RecognizedFace(detection=detection, status=RecognitionStatus.RECOGNIZED, match=match)
            )
            if candidate.key is not None:
                frame.notices.append(
                    RecognitionNotice(
                        key=candidate.key,
                        notify_on_recognition=candidate.notify_on_recognition,
                        event=RecognitionEvent(
                            face_id=candidate.face_id,
                            identity_id=candidate.identity_id,
                            name=candidate.name or "Unknown",
                            image=detection.image,
                            notes=candidate.notes,
                        ),
                    )
                )
        return frame

    async def recognize_frame(self, detections: List[Detection]) -> FrameRecognition:
        """Recognize one frame against the whole gallery.

        Unrecognized detections are stored as standalone faces when auto-save
        is enabled; a saved face joins the candidates for the rest of the frame.

        Raises:
            PersistenceError: If the gallery cannot be read
        """
        candidates = await self._gallery.list_all()
        frame = self.recognize(detections, candidates)

        if not self.auto_save_unidentified:
            return frame

        async with self._write_lock:
            for index, face in enumerate(frame.faces):
                if face.status != RecognitionStatus.UNRECOGNIZED:
                    continue
                # An earlier save in this frame may already cover this detection.
                if find_best_match(face.detection.embedding, candidates, self.live_threshold) is not None:
                    continue
                record = FaceRecord.from_detection(face.detection, name=UNIDENTIFIED_NAME).model_copy(
                    update={"notes": UNIDENTIFIED_NOTES, "notify_on_recognition": False}
                )
                saved_id = await self._gallery.save_face(record)
                if saved_id is None:
                    continue
                logger.info("Auto-saved unidentified face", face_id=saved_id)
                frame.faces[index] = face.model_copy(update={"saved_face_id": saved_id})
                candidates.append(Candidate.from_face(record.model_copy(update={"id": saved_id})))
        return frame

    async def cluster_face(self, face: FaceRecord) -> ClusteringResult:
        """Merge a captured face into the closest identity or create a new one.

        Returns:
            Merged or Stored on success, Discarded for faces without embedding or
            image, Failed when the store could not be read or written
        """
        if not face.is_storable:
            logger.warning("Discarding face without embedding or image")
            return ClusteringResult(outcome=ClusteringOutcome.DISCARDED)

        async with self._write_lock:
            try:
                candidates = await self._comparison_set()
            except PersistenceError as e:
                logger.error("Failed to load gallery for clustering", error=str(e))
                return ClusteringResult(outcome=ClusteringOutcome.FAILED)

            match = find_best_match(face.embedding, candidates, self.cluster_threshold)
            if match is not None:
                identity_id = match.candidate.identity_id
                face_id = await self._gallery.add_face(identity_id, face)
                if face_id is None:
                    return ClusteringResult(outcome=ClusteringOutcome.FAILED, distance=match.distance)
                logger.info(
                    "Merged face into identity",
                    identity_id=identity_id,
                    face_id=face_id,
                    distance=match.distance,
                )
                return ClusteringResult(
                    outcome=ClusteringOutcome.MERGED,
                    identity_id=identity_id,
                    face_id=face_id,
                    distance=match.distance,
                )

            created = await self._gallery.create_identity_with_face(face)
            if created is None:
                return ClusteringResult(outcome=ClusteringOutcome.FAILED)
            identity_id, face_id = created
            logger.info("Stored face as new identity", identity_id=identity_id, face_id=face_id)
            return ClusteringResult(outcome=ClusteringOutcome.STORED, identity_id=identity_id, face_id=face_id)

    async def cluster_upload(self, image_bytes: bytes, name: Optional[str] = None) -> ClusteringResult:
        """Extract the single face of an uploaded image and cluster it.

        Raises:
            InvalidImageError: If the image cannot be decoded
            ServiceNotInitializedError: If no extractor was configured
        """
        if self._extractor is None:
            raise ServiceNotInitializedError("No embedding extractor configured")

        detections = await self._extractor.extract(image_bytes, max_faces=1)
        if not detections:
            logger.warning("No face detected in uploaded image", name=name)
            return ClusteringResult(outcome=ClusteringOutcome.DISCARDED)

        return await self.cluster_face(FaceRecord.from_detection(detections[0], name=name))

    async def _comparison_set(self) -> List[Candidate]:
        if self.comparison_mode == "representative":
            candidates = await self._gallery.list_representatives()
        else:
            candidates = await self._gallery.list_all()
        return [candidate for candidate in candidates if candidate.identity_id is not None]

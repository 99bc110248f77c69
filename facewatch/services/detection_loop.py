"""Frame-by-frame live detection loop."""
import time
from typing import AsyncIterator, Callable, Optional

from facewatch.core.config import settings
from facewatch.core.logging import get_logger
from facewatch.domain.interfaces.recognition.embedding_extractor import EmbeddingExtractor
from facewatch.domain.value_objects.recognition import FrameRecognition
from facewatch.services.clustering import ClusteringPolicy
from facewatch.services.notification_throttle import Clock, CooldownTracker
from facewatch.services.notifications import NotificationService

logger = get_logger(__name__)

FrameCallback = Callable[[FrameRecognition], None]


class LiveDetectionLoop:
    """Runs detection and recognition over a stream of frames.

    Each frame is fully processed, including any store writes and
    notifications, before the next one is read. An error in one frame is
    logged and the loop moves on. A short memory keeps a face that stays in
    view across many frames from reaching the notification service again
    until the memory window has passed.

    Example:
        ```python
        loop = LiveDetectionLoop(extractor, policy, notifications)
        await loop.run(camera_frames(), on_frame=render)
        ```
    """

    def __init__(
        self,
        extractor: EmbeddingExtractor,
        policy: ClusteringPolicy,
        notifications: NotificationService,
        memory_seconds: float = settings.DETECTION_MEMORY_SECONDS,
        max_faces: Optional[int] = settings.MAX_FACES_PER_IMAGE,
        clock: Clock = time.monotonic,
    ) -> None:
        self._extractor = extractor
        self._policy = policy
        self._notifications = notifications
        self._memory = CooldownTracker(memory_seconds, clock)
        self._max_faces = max_faces
        self._running = False
        self.frames_processed = 0
        self.frame_errors = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def process_frame(self, frame: bytes) -> FrameRecognition:
        """Detect, recognize and notify for a single frame.

        Raises:
            Any error of the extractor, the gallery or the notification sink
        """
        detections = await self._extractor.extract(frame, max_faces=self._max_faces)
        if not detections:
            return FrameRecognition()

        recognition = await self._policy.recognize_frame(detections)
        for notice in recognition.notices:
            if not self._memory.should_notify(notice.key):
                continue
            self._memory.record(notice.key)
            await self._notifications.handle(notice)

        logger.debug(
            "Processed frame",
            faces=len(recognition.faces),
            recognized=len(recognition.recognized),
        )
        return recognition

    async def run(self, frames: AsyncIterator[bytes], on_frame: Optional[FrameCallback] = None) -> int:
        """Process frames until the source is exhausted or :meth:`stop` is called.

        Returns:
            Number of frames processed successfully
        """
        self._running = True
        logger.info("Live detection started")
        try:
            async for frame in frames:
                if not self._running:
                    break
                try:
                    recognition = await self.process_frame(frame)
                except Exception as e:
                    self.frame_errors += 1
                    logger.error("Face detection error", error=str(e), exc_info=True)
                    continue

                self.frames_processed += 1
                if on_frame is not None:
                    on_frame(recognition)
        finally:
            self._running = False
            logger.info(
                "Live detection stopped",
                frames_processed=self.frames_processed,
                frame_errors=self.frame_errors,
            )
        return self.frames_processed

    def stop(self) -> None:
        """Stop scheduling frames; the frame in progress still completes."""
        self._running = False

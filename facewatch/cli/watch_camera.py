"""CLI tool for live face recognition from a camera."""
import argparse
import asyncio
import sys
from typing import AsyncIterator, List, Optional

import cv2
import numpy as np

from facewatch.core.config import settings
from facewatch.core.container import container
from facewatch.core.exceptions import FaceWatchError
from facewatch.core.logging import get_logger, setup_logging
from facewatch.domain.value_objects.recognition import FrameRecognition, RecognitionStatus, RecognizedFace

logger = get_logger(__name__)

KNOWN_COLOR = (0, 180, 0)
UNKNOWN_COLOR = (0, 0, 200)
TEXT_COLOR = (255, 255, 255)
WINDOW_NAME = "Face Watch"


def draw_faces(image: np.ndarray, faces: List[RecognizedFace]) -> np.ndarray:
    """Draw a labelled box around every face of a processed frame."""
    img_draw = image.copy()
    height, width = img_draw.shape[:2]
    font_scale = 0.6
    thickness = 2

    for face in faces:
        bbox = face.detection.bounding_box
        if bbox is None:
            continue
        x1 = int(bbox.left * width)
        y1 = int(bbox.top * height)
        x2 = int((bbox.left + bbox.width) * width)
        y2 = int((bbox.top + bbox.height) * height)

        recognized = face.status == RecognitionStatus.RECOGNIZED
        color = KNOWN_COLOR if recognized else UNKNOWN_COLOR
        label = f"{face.name} ({face.similarity:.0%})" if recognized else "Unknown"

        cv2.rectangle(img_draw, (x1, y1), (x2, y2), color, thickness)
        (text_width, text_height), _ = cv2.getTextSize(
            label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, thickness
        )
        padding = 8
        cv2.rectangle(
            img_draw,
            (x1, y1 - text_height - padding * 2),
            (x1 + text_width + padding, y1),
            color,
            -1
        )
        cv2.putText(
            img_draw,
            label,
            (x1 + padding // 2, y1 - padding),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            TEXT_COLOR,
            thickness
        )
    return img_draw


class CameraSource:
    """Reads frames from an OpenCV capture device as JPEG bytes.

    The last raw frame is kept so results can be drawn on it.
    """

    def __init__(self, camera_index: int, interval: float) -> None:
        self.camera_index = camera_index
        self.interval = interval
        self.last_frame: Optional[np.ndarray] = None
        self._capture: Optional[cv2.VideoCapture] = None

    def open(self) -> None:
        self._capture = cv2.VideoCapture(self.camera_index)
        if not self._capture.isOpened():
            raise RuntimeError(f"Could not open camera {self.camera_index}")
        logger.info("Camera opened", camera_index=self.camera_index)

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info("Camera released", camera_index=self.camera_index)

    async def frames(self) -> AsyncIterator[bytes]:
        if self._capture is None:
            self.open()
        while True:
            ok, frame = await asyncio.to_thread(self._capture.read)
            if not ok:
                logger.warning("Camera returned no frame, stopping")
                return
            encoded, buffer = cv2.imencode(".jpg", frame)
            if not encoded:
                continue
            self.last_frame = frame
            yield buffer.tobytes()
            await asyncio.sleep(self.interval)


def report(recognition: FrameRecognition) -> None:
    """Log the people recognized in a frame."""
    for face in recognition.recognized:
        logger.info(
            "Recognized",
            name=face.name,
            similarity=f"{face.similarity:.2f}",
            identity_id=face.match.candidate.identity_id if face.match else None,
        )


async def watch_camera(camera_index: int, interval: float, display: bool) -> None:
    """Run the live detection loop against a camera until interrupted.

    Args:
        camera_index: OpenCV capture device index
        interval: Seconds to wait between frames
        display: Whether to show an annotated preview window
    """
    source = CameraSource(camera_index, interval)
    await container.initialize()
    loop = container.detection_loop

    def on_frame(recognition: FrameRecognition) -> None:
        report(recognition)
        if display and source.last_frame is not None:
            cv2.imshow(WINDOW_NAME, draw_faces(source.last_frame, recognition.faces))
            if cv2.waitKey(1) & 0xFF == ord("q"):
                loop.stop()

    try:
        source.open()
        await loop.run(source.frames(), on_frame=on_frame)
    finally:
        source.close()
        if display:
            cv2.destroyAllWindows()
        await container.cleanup()


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Recognize known faces from a live camera")
    parser.add_argument(
        "--camera",
        type=int,
        default=settings.CAMERA_INDEX,
        help="Camera device index"
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=0.2,
        help="Seconds between processed frames"
    )
    parser.add_argument(
        "--no-display",
        action="store_true",
        help="Don't open a preview window"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level, defaults to LOG_LEVEL from the environment"
    )
    args = parser.parse_args()

    setup_logging(level=args.log_level)
    try:
        asyncio.run(watch_camera(args.camera, args.interval, not args.no_display))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except (RuntimeError, FaceWatchError) as e:
        logger.error("Live detection failed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Tests for the InsightFace embedding extractor."""
import base64
import threading
from pathlib import Path

import cv2
import numpy as np
import pytest
from insightface.app.common import Face

from facewatch.core.config import settings
from facewatch.core.exceptions import InvalidImageError, ModelLoadError
from facewatch.services.recognition import insight_face
from facewatch.services.recognition.insight_face import InsightFaceExtractor, encode_data_url

# Test fixtures directory
FIXTURES_DIR = Path(__file__).parent.parent.parent / "fixtures"


class StubModel:
    """Stands in for FaceAnalysis and returns prepared results."""

    def __init__(self, faces):
        self.faces = faces
        self.max_num = None
        self.thread_id = None

    def get(self, img, max_num=0):
        self.max_num = max_num
        self.thread_id = threading.get_ident()
        return list(self.faces)


def insight_result(left, top, right, bottom, score, gender=1, age=30):
    embedding = np.zeros(512, dtype=np.float32)
    embedding[0] = 3.0
    embedding[1] = 4.0
    return Face(
        bbox=np.array([left, top, right, bottom], dtype=np.float32),
        det_score=np.float32(score),
        embedding=embedding,
        gender=gender,
        age=age,
    )


def image_bytes(width=200, height=100):
    ok, buffer = cv2.imencode(".jpg", np.full((height, width, 3), 127, dtype=np.uint8))
    assert ok
    return buffer.tobytes()


def decode_data_url(url):
    data = base64.b64decode(url.split(",", 1)[1])
    return cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_COLOR)


def extractor_with(faces):
    """Extractor whose model is replaced, so no weights are loaded."""
    extractor = InsightFaceExtractor.__new__(InsightFaceExtractor)
    extractor.model = StubModel(faces)
    return extractor


class TestInsightFaceExtractor:
    """Test suite for InsightFace embedding extraction."""

    async def test_converts_results_to_detections(self):
        extractor = extractor_with([insight_result(20, 10, 120, 60, 0.95)])

        detections = await extractor.extract(image_bytes())

        assert len(detections) == 1
        detection = detections[0]
        assert detection.embedding.shape == (512,)
        assert np.linalg.norm(detection.embedding) == pytest.approx(1.0)
        assert detection.embedding[:2].tolist() == pytest.approx([0.6, 0.8])
        assert detection.confidence == pytest.approx(0.95)
        assert detection.bounding_box.left == pytest.approx(0.1)
        assert detection.bounding_box.top == pytest.approx(0.1)
        assert detection.bounding_box.width == pytest.approx(0.5)
        assert detection.bounding_box.height == pytest.approx(0.5)
        assert detection.gender == "male"
        assert detection.age == 30.0
        assert detection.image.startswith("data:image/jpeg;base64,")
        assert decode_data_url(detection.image).shape == (50, 100, 3)

    async def test_each_detection_gets_its_own_crop(self):
        extractor = extractor_with([
            insight_result(0, 0, 40, 80, 0.9),
            insight_result(150, 20, 210, 50, 0.85),
        ])

        detections = await extractor.extract(image_bytes())

        assert decode_data_url(detections[0].image).shape == (80, 40, 3)
        # Boxes reaching past the border are clipped to the image.
        assert decode_data_url(detections[1].image).shape == (30, 50, 3)

    async def test_inference_runs_off_the_event_loop(self):
        extractor = extractor_with([insight_result(0, 0, 10, 10, 0.9)])

        await extractor.extract(image_bytes())

        assert extractor.model.thread_id is not None
        assert extractor.model.thread_id != threading.get_ident()

    async def test_filters_and_orders_by_confidence(self):
        extractor = extractor_with([
            insight_result(0, 0, 10, 10, 0.85, gender=0),
            insight_result(0, 0, 10, 10, 0.5),
            insight_result(0, 0, 10, 10, 0.99),
        ])

        detections = await extractor.extract(image_bytes())

        assert [d.confidence for d in detections] == pytest.approx([0.99, 0.85])
        assert detections[1].gender == "female"

    async def test_max_faces(self):
        extractor = extractor_with([
            insight_result(0, 0, 10, 10, 0.9),
            insight_result(0, 0, 10, 10, 0.95),
        ])

        detections = await extractor.extract(image_bytes(), max_faces=1)

        assert len(detections) == 1
        assert detections[0].confidence == pytest.approx(0.95)
        assert extractor.model.max_num == 1

    async def test_no_faces(self):
        assert await extractor_with([]).extract(image_bytes()) == []

    @pytest.mark.parametrize("data", [b"", b"not an image"])
    async def test_invalid_image(self, data):
        with pytest.raises(InvalidImageError):
            await extractor_with([]).extract(data)

    async def test_model_failure_is_invalid_image(self):
        extractor = extractor_with([])

        def crash(img, max_num=0):
            raise RuntimeError("inference failed")

        extractor.model.get = crash

        with pytest.raises(InvalidImageError):
            await extractor.extract(image_bytes())

    def test_large_images_are_downscaled(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_IMAGE_PIXELS", 5000)

        img = extractor_with([])._load_image(image_bytes(200, 100))

        height, width = img.shape[:2]
        assert width * height <= 5000
        assert width == 100

    def test_model_load_failure(self, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("model files missing")

        monkeypatch.setattr(insight_face, "FaceAnalysis", broken)

        with pytest.raises(ModelLoadError):
            InsightFaceExtractor()

    async def test_context_manager_releases_model(self):
        async with extractor_with([]) as extractor:
            assert extractor.model is not None
        assert extractor.model is None

    def test_encode_data_url(self):
        url = encode_data_url(np.zeros((10, 10, 3), dtype=np.uint8))
        assert url.startswith("data:image/jpeg;base64,")


@pytest.mark.skipif(
    not (FIXTURES_DIR / "images/single_face.jpg").exists(),
    reason="Face image fixtures not available",
)
class TestInsightFaceModel:
    """Runs the real model against fixture images."""

    @pytest.fixture
    async def extractor(self):
        """Provide InsightFace extractor instance."""
        extractor = InsightFaceExtractor()
        yield extractor
        await extractor.__aexit__(None, None, None)

    async def test_detect_single_face(self, extractor):
        """Should detect exactly one face in single face image."""
        with open(FIXTURES_DIR / "images/single_face.jpg", "rb") as f:
            detections = await extractor.extract(f.read())

        assert len(detections) == 1
        assert detections[0].confidence > settings.MIN_FACE_CONFIDENCE
        assert detections[0].embedding.shape == (512,)

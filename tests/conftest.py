"""Shared fixtures: in-memory stores, a fake extractor and a controllable clock."""
import pytest
from fakes import (
    FakeClock,
    FakeExtractor,
    InMemoryGalleryStore,
    InMemoryNotificationSink,
    InMemorySettingsStore,
)

from facewatch.services.clustering import ClusteringPolicy
from facewatch.services.detection_loop import LiveDetectionLoop
from facewatch.services.gallery import Gallery
from facewatch.services.notification_throttle import NotificationThrottle
from facewatch.services.notifications import NotificationService


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gallery_store() -> InMemoryGalleryStore:
    return InMemoryGalleryStore()


@pytest.fixture
def notification_sink() -> InMemoryNotificationSink:
    return InMemoryNotificationSink()


@pytest.fixture
def settings_store() -> InMemorySettingsStore:
    return InMemorySettingsStore()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def gallery(gallery_store) -> Gallery:
    return Gallery(gallery_store, empty_identity_policy="delete")


@pytest.fixture
def policy(gallery, extractor) -> ClusteringPolicy:
    return ClusteringPolicy(
        gallery,
        extractor=extractor,
        live_threshold=0.5,
        cluster_threshold=0.55,
        comparison_mode="all_faces",
        auto_save_unidentified=False,
    )


@pytest.fixture
def throttle(settings_store, clock) -> NotificationThrottle:
    return NotificationThrottle(settings_store, cooldown_seconds=60.0, clock=clock)


@pytest.fixture
def notifications(notification_sink, throttle, gallery) -> NotificationService:
    return NotificationService(sink=notification_sink, throttle=throttle, gallery=gallery)


@pytest.fixture
def detection_loop(extractor, policy, notifications, clock) -> LiveDetectionLoop:
    return LiveDetectionLoop(
        extractor=extractor,
        policy=policy,
        notifications=notifications,
        memory_seconds=10.0,
        max_faces=20,
        clock=clock,
    )

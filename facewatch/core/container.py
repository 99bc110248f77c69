"""Service container for dependency injection."""
from typing import Optional

from facewatch.core.config import settings
from facewatch.core.logging import get_logger
from facewatch.domain.interfaces.recognition.embedding_extractor import EmbeddingExtractor
from facewatch.domain.interfaces.storage.gallery_store import GalleryStore
from facewatch.domain.interfaces.storage.notification_sink import NotificationSink
from facewatch.domain.interfaces.storage.settings_store import SettingsStore
from facewatch.infrastructure.database.session import init_models
from facewatch.infrastructure.database.stores import SqlGalleryStore, SqlNotificationSink, SqlSettingsStore
from facewatch.services.clustering import ClusteringPolicy
from facewatch.services.detection_loop import LiveDetectionLoop
from facewatch.services.gallery import Gallery
from facewatch.services.notification_throttle import NotificationThrottle
from facewatch.services.notifications import NotificationService

logger = get_logger(__name__)


class ServiceContainer:
    """Container for application services.

    Stores and the extractor default to the SQL and InsightFace
    implementations; any of them can be passed in instead.

    Example:
        ```python
        container = ServiceContainer()
        await container.initialize()

        policy = container.clustering_policy
        notifications = container.notification_service
        ```
    """

    def __init__(self) -> None:
        """Initialize empty container."""
        # Collaborators - interface type hints
        self.gallery_store: Optional[GalleryStore] = None
        self.notification_sink: Optional[NotificationSink] = None
        self.settings_store: Optional[SettingsStore] = None
        self.extractor: Optional[EmbeddingExtractor] = None

        # Domain services
        self.gallery: Optional[Gallery] = None
        self.clustering_policy: Optional[ClusteringPolicy] = None
        self.notification_throttle: Optional[NotificationThrottle] = None
        self.notification_service: Optional[NotificationService] = None
        self.detection_loop: Optional[LiveDetectionLoop] = None

    @property
    def is_initialized(self) -> bool:
        return self.detection_loop is not None

    async def initialize(
        self,
        gallery_store: Optional[GalleryStore] = None,
        notification_sink: Optional[NotificationSink] = None,
        settings_store: Optional[SettingsStore] = None,
        extractor: Optional[EmbeddingExtractor] = None,
    ) -> None:
        """Initialize all services in the correct order."""
        if gallery_store is None or notification_sink is None or settings_store is None:
            await init_models()
        self.gallery_store = gallery_store or SqlGalleryStore()
        self.notification_sink = notification_sink or SqlNotificationSink()
        self.settings_store = settings_store or SqlSettingsStore()

        if extractor is None:
            # Imported here so the model stack only loads when it is used.
            from facewatch.services.recognition.insight_face import InsightFaceExtractor
            extractor = InsightFaceExtractor()
        self.extractor = extractor

        self.gallery = Gallery(self.gallery_store)
        self.clustering_policy = ClusteringPolicy(self.gallery, extractor=self.extractor)
        self.notification_throttle = NotificationThrottle(self.settings_store)
        await self.notification_throttle.load_settings()
        self.notification_service = NotificationService(
            sink=self.notification_sink,
            throttle=self.notification_throttle,
            gallery=self.gallery,
        )
        self.detection_loop = LiveDetectionLoop(
            extractor=self.extractor,
            policy=self.clustering_policy,
            notifications=self.notification_service,
        )
        logger.info(
            "Services initialized",
            live_threshold=self.clustering_policy.live_threshold,
            cluster_threshold=self.clustering_policy.cluster_threshold,
            comparison_mode=self.clustering_policy.comparison_mode,
            environment=settings.ENVIRONMENT,
        )

    async def cleanup(self) -> None:
        """Cleanup all services in reverse order of initialization."""
        if self.detection_loop is not None:
            self.detection_loop.stop()
        self.detection_loop = None
        self.notification_service = None
        self.notification_throttle = None
        self.clustering_policy = None
        self.gallery = None

        self.extractor = None
        self.settings_store = None
        self.notification_sink = None
        self.gallery_store = None


# Global container instance
container = ServiceContainer()

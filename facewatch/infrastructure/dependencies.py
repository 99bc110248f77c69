"""FastAPI dependency providers."""
from typing import AsyncGenerator

from fastapi import Depends

from facewatch.core.container import ServiceContainer, container
from facewatch.core.exceptions import ServiceNotInitializedError
from facewatch.domain.interfaces.storage.settings_store import SettingsStore
from facewatch.services.clustering import ClusteringPolicy
from facewatch.services.detection_loop import LiveDetectionLoop
from facewatch.services.gallery import Gallery
from facewatch.services.notification_throttle import NotificationThrottle
from facewatch.services.notifications import NotificationService


async def get_container() -> ServiceContainer:
    """Dependency provider for the global ServiceContainer instance."""
    if not container.is_initialized:
        try:
            await container.initialize()
        except Exception as e:
            raise ServiceNotInitializedError(f"Service container could not be initialized: {e}")
    return container


async def get_gallery(cont: ServiceContainer = Depends(get_container)) -> AsyncGenerator[Gallery, None]:
    """Provide the gallery service."""
    if cont.gallery is None:
        raise ServiceNotInitializedError("Gallery not initialized")
    yield cont.gallery


async def get_clustering_policy(
    cont: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[ClusteringPolicy, None]:
    """Provide the clustering policy."""
    if cont.clustering_policy is None:
        raise ServiceNotInitializedError("Clustering policy not initialized")
    yield cont.clustering_policy


async def get_detection_loop(
    cont: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[LiveDetectionLoop, None]:
    """Provide the live detection loop; its short memory spans requests."""
    if cont.detection_loop is None:
        raise ServiceNotInitializedError("Detection loop not initialized")
    yield cont.detection_loop


async def get_notification_service(
    cont: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[NotificationService, None]:
    """Provide the notification service."""
    if cont.notification_service is None:
        raise ServiceNotInitializedError("Notification service not initialized")
    yield cont.notification_service


async def get_notification_throttle(
    cont: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[NotificationThrottle, None]:
    if cont.notification_throttle is None:
        raise ServiceNotInitializedError("Notification throttle not initialized")
    yield cont.notification_throttle


async def get_settings_store(
    cont: ServiceContainer = Depends(get_container),
) -> AsyncGenerator[SettingsStore, None]:
    if cont.settings_store is None:
        raise ServiceNotInitializedError("Settings store not initialized")
    yield cont.settings_store

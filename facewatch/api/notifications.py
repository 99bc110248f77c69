"""Recognition notification and notification settings endpoints."""
from typing import List, Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from facewatch.api.models.face import MarkAllReadResponse, NotificationResponse, NotificationSettingsModel
from facewatch.core.config import settings
from facewatch.core.exceptions import PersistenceError
from facewatch.core.logging import get_logger
from facewatch.domain.interfaces.storage.settings_store import (
    NOTIFICATION_COOLDOWN_SECONDS,
    NOTIFICATIONS_ENABLED,
    SettingsStore,
)
from facewatch.infrastructure.dependencies import (
    get_notification_service,
    get_notification_throttle,
    get_settings_store,
)
from facewatch.services.notification_throttle import NotificationThrottle
from facewatch.services.notifications import NotificationService

logger = get_logger(__name__)
router = APIRouter(
    responses={
        404: {"description": "Notification not found"},
        500: {"description": "Internal server error"}
    }
)
settings_router = APIRouter()


@router.get("", response_model=List[NotificationResponse], summary="Unread notifications, newest first")
async def list_unread(
    notifications: NotificationService = Depends(get_notification_service),
) -> List[NotificationResponse]:
    try:
        events = await notifications.list_unread()
    except PersistenceError as e:
        logger.error("Error fetching notifications", error=str(e))
        raise HTTPException(status_code=500, detail="Could not fetch notifications")
    return [NotificationResponse.from_event(event) for event in events]


@router.post("/read-all", response_model=MarkAllReadResponse, summary="Mark every notification as read")
async def mark_all_as_read(
    notifications: NotificationService = Depends(get_notification_service),
) -> MarkAllReadResponse:
    try:
        updated = await notifications.mark_all_as_read()
    except PersistenceError as e:
        logger.error("Error marking all notifications as read", error=str(e))
        raise HTTPException(status_code=500, detail="Could not update notifications")
    return MarkAllReadResponse(updated=updated)


@router.get(
    "/history/{kind}/{subject_id}",
    response_model=List[NotificationResponse],
    summary="Recognition history of a face or of every face of a person",
)
async def recognition_history(
    kind: Literal["face", "person"],
    subject_id: str,
    limit: int = Query(settings.HISTORY_LIMIT, ge=1, le=500),
    notifications: NotificationService = Depends(get_notification_service),
) -> List[NotificationResponse]:
    try:
        events = await notifications.history(subject_id, kind=kind, limit=limit)
    except PersistenceError as e:
        logger.error("Error fetching recognition history", kind=kind, subject_id=subject_id, error=str(e))
        raise HTTPException(status_code=500, detail="Could not fetch history")
    return [NotificationResponse.from_event(event) for event in events]


@router.post("/{notification_id}/read", status_code=204, summary="Mark a notification as read")
async def mark_as_read(
    notification_id: str,
    notifications: NotificationService = Depends(get_notification_service),
) -> None:
    try:
        updated = await notifications.mark_as_read(notification_id)
    except PersistenceError as e:
        logger.error("Error updating notification", notification_id=notification_id, error=str(e))
        raise HTTPException(status_code=500, detail="Could not update notification")
    if not updated:
        raise HTTPException(status_code=404, detail="Notification not found")


@settings_router.get("/notifications", response_model=NotificationSettingsModel, summary="Notification settings")
async def get_notification_settings(
    throttle: NotificationThrottle = Depends(get_notification_throttle),
) -> NotificationSettingsModel:
    return NotificationSettingsModel(enabled=throttle.enabled, cooldown_seconds=throttle.cooldown_seconds)


@settings_router.put("/notifications", response_model=NotificationSettingsModel, summary="Update notification settings")
async def update_notification_settings(
    request: NotificationSettingsModel,
    store: SettingsStore = Depends(get_settings_store),
    throttle: NotificationThrottle = Depends(get_notification_throttle),
) -> NotificationSettingsModel:
    try:
        await store.set(NOTIFICATIONS_ENABLED, request.enabled)
        await store.set(NOTIFICATION_COOLDOWN_SECONDS, request.cooldown_seconds)
        await throttle.reload_settings()
    except PersistenceError as e:
        logger.error("Error saving notification settings", error=str(e))
        raise HTTPException(status_code=500, detail="Could not save settings")
    return NotificationSettingsModel(enabled=throttle.enabled, cooldown_seconds=throttle.cooldown_seconds)

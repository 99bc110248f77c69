"""API v1 router initialization."""
from fastapi import APIRouter

from .faces import router as faces_router
from .notifications import router as notifications_router
from .notifications import settings_router
from .persons import router as persons_router
from .recognition import router as recognition_router

# Create v1 router
router = APIRouter()

router.include_router(persons_router, prefix="/persons", tags=["persons"])
router.include_router(faces_router, prefix="/faces", tags=["faces"])
router.include_router(recognition_router, prefix="/recognition", tags=["recognition"])
router.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
router.include_router(settings_router, prefix="/settings", tags=["settings"])

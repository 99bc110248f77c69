"""Live recognition API endpoint."""
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from facewatch.api.models.face import FrameRecognitionResponse, RecognizedFaceResponse
from facewatch.core.exceptions import InvalidImageError, PersistenceError
from facewatch.core.logging import get_logger
from facewatch.infrastructure.dependencies import get_detection_loop
from facewatch.services.detection_loop import LiveDetectionLoop

logger = get_logger(__name__)
router = APIRouter(
    responses={
        400: {"description": "Invalid frame"},
        500: {"description": "Internal server error"}
    }
)


@router.post(
    "/frame",
    response_model=FrameRecognitionResponse,
    summary="Recognize the faces in a video frame",
    description=(
        "Matches every face of the frame against all stored faces and sends "
        "notifications for recognized people outside their cooldown window."
    ),
)
async def recognize_frame(
    file: UploadFile = File(...),
    loop: LiveDetectionLoop = Depends(get_detection_loop),
) -> FrameRecognitionResponse:
    frame = await file.read()
    try:
        recognition = await loop.process_frame(frame)
    except InvalidImageError as e:
        logger.error("Invalid frame", error=str(e))
        raise HTTPException(status_code=400, detail="Invalid image format")
    except PersistenceError as e:
        logger.error("Failed to read gallery for recognition", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load stored faces")

    return FrameRecognitionResponse(
        faces=[RecognizedFaceResponse.from_recognized(face) for face in recognition.faces]
    )

"""Stored face API endpoints, including uploads and merges."""
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from facewatch.api.models.face import (
    FaceMergeRequest,
    FaceMergeResponse,
    FaceResponse,
    FaceUpdateRequest,
    FaceUploadResponse,
)
from facewatch.core.exceptions import InvalidImageError, PersistenceError
from facewatch.core.logging import get_logger
from facewatch.domain.value_objects.recognition import ClusteringOutcome
from facewatch.infrastructure.dependencies import get_clustering_policy, get_gallery
from facewatch.services.clustering import ClusteringPolicy
from facewatch.services.gallery import Gallery

logger = get_logger(__name__)
router = APIRouter(
    responses={
        400: {"description": "Invalid request"},
        404: {"description": "Face not found"},
        500: {"description": "Internal server error"}
    }
)


@router.get("", response_model=List[FaceResponse], summary="List stored faces")
async def list_faces(
    person_id: Optional[str] = None,
    gallery: Gallery = Depends(get_gallery),
) -> List[FaceResponse]:
    try:
        faces = await gallery.list_faces(person_id)
    except PersistenceError as e:
        logger.error("Failed to list faces", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load faces")
    return [FaceResponse.from_record(face) for face in faces]


@router.post(
    "/upload",
    response_model=FaceUploadResponse,
    summary="Upload a face image",
    description=(
        "Detects the face in the image and either adds it to the closest known person "
        "or creates a new person named after the file."
    ),
)
async def upload_face(
    file: UploadFile = File(...),
    name: Optional[str] = Form(None),
    policy: ClusteringPolicy = Depends(get_clustering_policy),
) -> FaceUploadResponse:
    """Store an uploaded face image.

    Raises:
        HTTPException: 400 for undecodable images or images without a face,
            500 when the face could not be stored
    """
    image_bytes = await file.read()
    label = name or (Path(file.filename).stem if file.filename else None)

    try:
        result = await policy.cluster_upload(image_bytes, name=label)
    except InvalidImageError as e:
        logger.error("Invalid image format", error=str(e), filename=file.filename)
        raise HTTPException(status_code=400, detail="Invalid image format")

    if result.outcome == ClusteringOutcome.DISCARDED:
        raise HTTPException(status_code=400, detail=f"No face detected in \"{file.filename}\"")
    if result.outcome == ClusteringOutcome.FAILED:
        raise HTTPException(status_code=500, detail="Failed to store face")
    return FaceUploadResponse.from_result(result)


@router.get("/{face_id}", response_model=FaceResponse, summary="Get a stored face")
async def get_face(face_id: str, gallery: Gallery = Depends(get_gallery)) -> FaceResponse:
    try:
        face = await gallery.get_face(face_id)
    except PersistenceError as e:
        logger.error("Failed to load face", face_id=face_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load face")
    if face is None:
        raise HTTPException(status_code=404, detail="Face not found")
    return FaceResponse.from_record(face)


@router.patch("/{face_id}", response_model=FaceResponse, summary="Edit name, notes or notify flag")
async def update_face(
    face_id: str,
    request: FaceUpdateRequest,
    gallery: Gallery = Depends(get_gallery),
) -> FaceResponse:
    try:
        face = await gallery.get_face(face_id)
    except PersistenceError as e:
        logger.error("Failed to load face", face_id=face_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load face")
    if face is None:
        raise HTTPException(status_code=404, detail="Face not found")

    updated = face.model_copy(update=request.model_dump(exclude_unset=True))
    if not await gallery.update_face(updated):
        raise HTTPException(status_code=500, detail="Failed to update face")
    return FaceResponse.from_record(updated)


@router.delete("/{face_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a stored face")
async def delete_face(face_id: str, gallery: Gallery = Depends(get_gallery)) -> None:
    if not await gallery.remove_face(face_id):
        raise HTTPException(status_code=404, detail="Face not found")


@router.post("/{face_id}/person", response_model=FaceMergeResponse, summary="Create a person from a face")
async def promote_face(face_id: str, gallery: Gallery = Depends(get_gallery)) -> FaceMergeResponse:
    identity_id = await gallery.promote_face(face_id)
    if identity_id is None:
        raise HTTPException(status_code=404, detail="Could not create person from face")
    return FaceMergeResponse(identity_id=identity_id)


@router.post("/{face_id}/merge", response_model=FaceMergeResponse, summary="Merge two faces into one person")
async def merge_faces(
    face_id: str,
    request: FaceMergeRequest,
    gallery: Gallery = Depends(get_gallery),
) -> FaceMergeResponse:
    if face_id == request.target_face_id:
        raise HTTPException(status_code=400, detail="Cannot merge a face with itself")
    identity_id = await gallery.merge_faces(face_id, request.target_face_id)
    if identity_id is None:
        raise HTTPException(status_code=404, detail="Could not merge faces")
    return FaceMergeResponse(identity_id=identity_id)


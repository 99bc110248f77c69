"""Person (identity) API endpoints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from facewatch.api.models.face import PersonResponse, PersonUpdateRequest
from facewatch.core.exceptions import PersistenceError
from facewatch.core.logging import get_logger
from facewatch.infrastructure.dependencies import get_gallery
from facewatch.services.gallery import Gallery

logger = get_logger(__name__)
router = APIRouter(
    responses={
        404: {"description": "Person not found"},
        500: {"description": "Internal server error"}
    }
)


@router.get("", response_model=List[PersonResponse], summary="List persons with their faces")
async def list_persons(gallery: Gallery = Depends(get_gallery)) -> List[PersonResponse]:
    try:
        identities = await gallery.list_identities(with_faces=True)
    except PersistenceError as e:
        logger.error("Failed to list persons", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load persons")
    return [PersonResponse.from_identity(identity) for identity in identities]


@router.get("/{person_id}", response_model=PersonResponse, summary="Get a person with its faces")
async def get_person(person_id: str, gallery: Gallery = Depends(get_gallery)) -> PersonResponse:
    try:
        identity = await gallery.get_identity(person_id)
    except PersistenceError as e:
        logger.error("Failed to load person", person_id=person_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load person")
    if identity is None:
        raise HTTPException(status_code=404, detail="Person not found")
    return PersonResponse.from_identity(identity)


@router.patch("/{person_id}", response_model=PersonResponse, summary="Edit name, notes or notify flag")
async def update_person(
    person_id: str,
    request: PersonUpdateRequest,
    gallery: Gallery = Depends(get_gallery),
) -> PersonResponse:
    """Update a person. Fields left out of the request keep their value.

    Raises:
        HTTPException: 404 if the person does not exist, 500 if the update fails
    """
    try:
        identity = await gallery.get_identity(person_id)
    except PersistenceError as e:
        logger.error("Failed to load person", person_id=person_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to load person")
    if identity is None:
        raise HTTPException(status_code=404, detail="Person not found")

    changes = request.model_dump(exclude_unset=True)
    updated = identity.model_copy(update=changes)
    if not await gallery.update_identity(updated):
        raise HTTPException(status_code=500, detail="Failed to update person")

    return PersonResponse.from_identity(await gallery.get_identity(person_id) or updated)


@router.delete("/{person_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a person and its faces")
async def delete_person(person_id: str, gallery: Gallery = Depends(get_gallery)) -> None:
    if not await gallery.remove_identity(person_id):
        raise HTTPException(status_code=404, detail="Person not found")


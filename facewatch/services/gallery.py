"""Gallery service: identities, their faces, and the comparison sets built from them."""
from typing import Dict, List, Optional, Tuple

from facewatch.core.config import settings
from facewatch.core.exceptions import PersistenceError
from facewatch.core.logging import get_logger
from facewatch.domain.entities.face import FaceRecord, utcnow
from facewatch.domain.entities.identity import Identity
from facewatch.domain.interfaces.storage.gallery_store import GalleryStore
from facewatch.domain.value_objects.recognition import Candidate

logger = get_logger(__name__)


class Gallery:
    """Known identities and standalone faces on top of a persistent store.

    Mutations report failure with ``None``/``False`` instead of raising, so a
    missing identity or a storage error never interrupts the caller's loop.

    Example:
        ```python
        gallery = Gallery(SqlGalleryStore(async_session_factory))

        identity_id = await gallery.create_identity(face)
        await gallery.add_face(identity_id, another_face)
        candidates = await gallery.list_all()
        ```
    """

    def __init__(
        self,
        store: GalleryStore,
        empty_identity_policy: str = settings.EMPTY_IDENTITY_POLICY,
    ) -> None:
        """Initialize the gallery.

        Args:
            store: Persistent store for identities and faces
            empty_identity_policy: "delete" removes an identity together with its
                last face, "keep" leaves it as an empty named placeholder
        """
        if empty_identity_policy not in ("delete", "keep"):
            raise ValueError(f"Unknown empty identity policy: {empty_identity_policy}")
        self._store = store
        self.empty_identity_policy = empty_identity_policy

    async def list_all(self) -> List[Candidate]:
        """Every stored face embedding, owned or standalone, as a candidate.

        Raises:
            PersistenceError: If the store cannot be read
        """
        identities = await self._identities_by_id()
        faces = await self._store.list_faces()
        return [
            Candidate.from_face(face, identities.get(face.identity_id) if face.identity_id else None)
            for face in faces
        ]

    async def list_representatives(self) -> List[Candidate]:
        """One candidate per identity (its first face with an embedding) plus standalone faces.

        Raises:
            PersistenceError: If the store cannot be read
        """
        candidates: List[Candidate] = []
        for identity in await self._store.list_identities(with_faces=True):
            representative = next((face for face in identity.faces if face.has_valid_embedding), None)
            if representative is not None:
                candidates.append(Candidate.from_face(representative, identity))

        for face in await self._store.list_faces():
            if face.identity_id is None:
                candidates.append(Candidate.from_face(face))
        return candidates

    async def list_identities(self, with_faces: bool = False) -> List[Identity]:
        return await self._store.list_identities(with_faces=with_faces)

    async def get_identity(self, identity_id: str) -> Optional[Identity]:
        return await self._store.get_identity(identity_id)

    async def list_faces(self, identity_id: Optional[str] = None) -> List[FaceRecord]:
        return await self._store.list_faces(identity_id)

    async def get_face(self, face_id: str) -> Optional[FaceRecord]:
        return await self._store.get_face(face_id)

    async def add_face(self, identity_id: str, face: FaceRecord) -> Optional[str]:
        """Append a face to an existing identity.

        Args:
            identity_id: Identity that will own the face
            face: Face with embedding and image

        Returns:
            The new face id, or None if the face is invalid, the identity does
            not exist, or the store failed
        """
        if not face.is_storable:
            logger.warning("Cannot store face without embedding and image", identity_id=identity_id)
            return None

        try:
            identity = await self._store.get_identity(identity_id)
            if identity is None:
                logger.warning("Identity not found", identity_id=identity_id)
                return None

            linked = face.model_copy(
                update={"id": None, "identity_id": identity_id, "name": face.name or identity.name}
            )
            face_id = await self._store.add_face(linked)
        except PersistenceError as e:
            logger.error("Failed to add face to identity", identity_id=identity_id, error=str(e))
            return None

        logger.info("Added face to identity", identity_id=identity_id, face_id=face_id)
        return face_id

    async def create_identity(self, face: FaceRecord) -> Optional[str]:
        """Create a new identity seeded with one face.

        If the identity is created but the face cannot be stored, the identity
        is deleted again so that no identity is left without faces.

        Returns:
            The new identity id, or None on failure
        """
        created = await self.create_identity_with_face(face)
        return created[0] if created else None

    async def create_identity_with_face(self, face: FaceRecord) -> Optional[Tuple[str, str]]:
        """Same as :meth:`create_identity`, returning ``(identity_id, face_id)``."""
        if not face.is_storable:
            logger.warning("Cannot create identity from face without embedding and image")
            return None

        try:
            identity_id = await self._store.create_identity(Identity.seeded_from(face))
        except PersistenceError as e:
            logger.error("Failed to create identity", error=str(e))
            return None

        face_id = await self.add_face(identity_id, face)
        if face_id is None:
            await self._rollback_identity(identity_id)
            return None

        logger.info("Created identity", identity_id=identity_id, face_id=face_id)
        return identity_id, face_id

    async def save_face(self, face: FaceRecord) -> Optional[str]:
        """Store a standalone face that belongs to no identity.

        Returns:
            The new face id, or None on failure
        """
        if not face.is_storable:
            logger.warning("Cannot store face without embedding and image")
            return None
        try:
            return await self._store.add_face(face.model_copy(update={"id": None, "identity_id": None}))
        except PersistenceError as e:
            logger.error("Failed to save face", error=str(e))
            return None

    async def update_identity(self, identity: Identity) -> bool:
        """Update an identity's name, notes and notify flag."""
        if identity.id is None:
            return False
        try:
            updated = await self._store.update_identity(identity.model_copy(update={"updated_at": utcnow()}))
        except PersistenceError as e:
            logger.error("Failed to update identity", identity_id=identity.id, error=str(e))
            return False
        if not updated:
            logger.warning("Identity not found", identity_id=identity.id)
        return updated

    async def update_face(self, face: FaceRecord) -> bool:
        """Update a face's name, notes and notify flag."""
        if face.id is None:
            return False
        try:
            updated = await self._store.update_face(face)
        except PersistenceError as e:
            logger.error("Failed to update face", face_id=face.id, error=str(e))
            return False
        if not updated:
            logger.warning("Face not found", face_id=face.id)
        return updated

    async def remove_identity(self, identity_id: str) -> bool:
        """Delete an identity and all of its faces."""
        try:
            removed = await self._store.delete_identity(identity_id)
        except PersistenceError as e:
            logger.error("Failed to delete identity", identity_id=identity_id, error=str(e))
            return False
        if removed:
            logger.info("Deleted identity", identity_id=identity_id)
        else:
            logger.warning("Identity not found", identity_id=identity_id)
        return removed

    async def remove_face(self, face_id: str) -> bool:
        """Delete a face, applying the empty identity policy to its former owner."""
        try:
            face = await self._store.get_face(face_id)
            if face is None:
                logger.warning("Face not found", face_id=face_id)
                return False
            removed = await self._store.delete_face(face_id)
        except PersistenceError as e:
            logger.error("Failed to delete face", face_id=face_id, error=str(e))
            return False

        if removed and face.identity_id is not None:
            await self._apply_empty_identity_policy(face.identity_id)
        return removed

    async def promote_face(self, face_id: str) -> Optional[str]:
        """Create an identity from an already stored standalone face.

        Returns:
            The identity the face now belongs to, or None on failure
        """
        try:
            face = await self._store.get_face(face_id)
        except PersistenceError as e:
            logger.error("Failed to load face", face_id=face_id, error=str(e))
            return None
        if face is None:
            logger.warning("Face not found", face_id=face_id)
            return None
        if face.identity_id is not None:
            return face.identity_id

        try:
            identity_id = await self._store.create_identity(Identity.seeded_from(face))
        except PersistenceError as e:
            logger.error("Failed to create identity", face_id=face_id, error=str(e))
            return None

        try:
            linked = await self._store.update_face(face.model_copy(update={"identity_id": identity_id}))
        except PersistenceError as e:
            logger.error("Failed to link face to identity", face_id=face_id, error=str(e))
            linked = False
        if not linked:
            await self._rollback_identity(identity_id)
            return None

        logger.info("Promoted face to identity", face_id=face_id, identity_id=identity_id)
        return identity_id

    async def assign_face(self, face_id: str, identity_id: str) -> bool:
        """Move a stored face into an identity and take over the identity's name and notify flag."""
        try:
            face = await self._store.get_face(face_id)
            identity = await self._store.get_identity(identity_id)
            if face is None or identity is None:
                logger.warning("Face or identity not found", face_id=face_id, identity_id=identity_id)
                return False
            previous = face.identity_id
            assigned = await self._store.update_face(
                face.model_copy(update={
                    "identity_id": identity_id,
                    "name": identity.name,
                    "notify_on_recognition": identity.notify_on_recognition,
                })
            )
        except PersistenceError as e:
            logger.error("Failed to assign face", face_id=face_id, identity_id=identity_id, error=str(e))
            return False

        if assigned and previous is not None and previous != identity_id:
            await self._apply_empty_identity_policy(previous)
        return assigned

    async def merge_faces(self, source_face_id: str, target_face_id: str) -> Optional[str]:
        """Put two stored faces into the same identity.

        The target's identity wins, then the source's; if neither has one, an
        identity is created from the target.

        Returns:
            The identity both faces belong to, or None on failure
        """
        try:
            source = await self._store.get_face(source_face_id)
            target = await self._store.get_face(target_face_id)
        except PersistenceError as e:
            logger.error("Failed to load faces for merge", error=str(e))
            return None
        if source is None or target is None:
            logger.warning("Face not found for merge", source=source_face_id, target=target_face_id)
            return None

        if target.identity_id is not None:
            identity_id, face_id = target.identity_id, source_face_id
        elif source.identity_id is not None:
            identity_id, face_id = source.identity_id, target_face_id
        else:
            identity_id = await self.promote_face(target_face_id)
            face_id = source_face_id
            if identity_id is None:
                return None

        if not await self.assign_face(face_id, identity_id):
            return None
        logger.info("Merged faces", identity_id=identity_id, source=source_face_id, target=target_face_id)
        return identity_id

    async def _identities_by_id(self) -> Dict[str, Identity]:
        return {identity.id: identity for identity in await self._store.list_identities()}

    async def _apply_empty_identity_policy(self, identity_id: str) -> None:
        if self.empty_identity_policy != "delete":
            return
        try:
            if not await self._store.list_faces(identity_id):
                await self._store.delete_identity(identity_id)
                logger.info("Deleted identity without faces", identity_id=identity_id)
        except PersistenceError as e:
            logger.error("Failed to clean up empty identity", identity_id=identity_id, error=str(e))

    async def _rollback_identity(self, identity_id: str) -> None:
        try:
            await self._store.delete_identity(identity_id)
            logger.warning("Rolled back identity without faces", identity_id=identity_id)
        except PersistenceError as e:
            logger.error("Failed to roll back identity", identity_id=identity_id, error=str(e))

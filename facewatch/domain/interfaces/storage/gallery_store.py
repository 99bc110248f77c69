"""Gallery store interface for identities and face records."""
from abc import ABC, abstractmethod
from typing import List, Optional

from ...entities.face import FaceRecord
from ...entities.identity import Identity


class GalleryStore(ABC):
    """Interface for persisting identities and their face records.

    Implementations raise PersistenceError when the underlying storage fails.
    Lookups of absent rows return None/False rather than raising.
    """

    @abstractmethod
    async def list_identities(self, with_faces: bool = False) -> List[Identity]:
        """
        List all identities.

        Args:
            with_faces: Also load the face records owned by each identity

        Returns:
            List of identities, faces ordered by capture time when loaded
        """
        pass

    @abstractmethod
    async def get_identity(self, identity_id: str) -> Optional[Identity]:
        """
        Get an identity with its face records.

        Args:
            identity_id: Identity identifier

        Returns:
            The identity, or None if it does not exist
        """
        pass

    @abstractmethod
    async def create_identity(self, identity: Identity) -> str:
        """
        Insert an identity without faces.

        Args:
            identity: Identity to insert (its id and faces are ignored)

        Returns:
            Generated identity identifier
        """
        pass

    @abstractmethod
    async def update_identity(self, identity: Identity) -> bool:
        """
        Update name, notes and notify flag of an identity.

        Returns:
            False if the identity does not exist
        """
        pass

    @abstractmethod
    async def delete_identity(self, identity_id: str) -> bool:
        """
        Delete an identity and, by cascade, all of its face records.

        Returns:
            False if the identity does not exist
        """
        pass

    @abstractmethod
    async def list_faces(self, identity_id: Optional[str] = None) -> List[FaceRecord]:
        """
        List stored face records.

        Args:
            identity_id: Restrict to the faces of one identity (None lists every face)
        """
        pass

    @abstractmethod
    async def get_face(self, face_id: str) -> Optional[FaceRecord]:
        """Get a face record, or None if it does not exist."""
        pass

    @abstractmethod
    async def add_face(self, face: FaceRecord) -> str:
        """
        Insert a face record, linked to ``face.identity_id`` when set.

        Returns:
            Generated face identifier
        """
        pass

    @abstractmethod
    async def update_face(self, face: FaceRecord) -> bool:
        """
        Update name, notes, notify flag and identity link of a face record.

        Returns:
            False if the face does not exist
        """
        pass

    @abstractmethod
    async def delete_face(self, face_id: str) -> bool:
        """
        Delete a face record.

        Returns:
            False if the face does not exist
        """
        pass

"""Custom exceptions for the face watch service."""
from typing import Optional


class FaceWatchError(Exception):
    """Base exception for face watch operations."""

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize face watch error.

        Args:
            message: Error description
            details: Additional error context
        """
        super().__init__(message)
        self.details = details or {}


class PersistenceError(FaceWatchError):
    """Raised when the storage collaborator fails."""
    pass


class InvalidImageError(FaceWatchError):
    """Raised when the provided image is invalid or cannot be processed."""
    pass


class ModelLoadError(FaceWatchError):
    """Raised when the embedding model fails to load."""
    pass


class ServiceNotInitializedError(FaceWatchError):
    """Raised when a service is requested before the container is initialized."""
    pass

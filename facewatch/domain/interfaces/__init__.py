"""Service interfaces package."""
from .recognition.embedding_extractor import EmbeddingExtractor
from .storage.gallery_store import GalleryStore
from .storage.notification_sink import NotificationSink
from .storage.settings_store import SettingsStore

__all__ = ["EmbeddingExtractor", "GalleryStore", "NotificationSink", "SettingsStore"]

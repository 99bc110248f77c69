"""Configuration settings for the face watch service."""
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    These settings are loaded from environment variables with the following precedence:
    1. Environment variables
    2. .env file
    3. Default values

    Attributes:
        LIVE_MATCH_THRESHOLD: Maximum L2 distance for recognizing a face in a live frame
        CLUSTER_THRESHOLD: Maximum L2 distance for merging a stored face into an identity
        NOTIFICATION_COOLDOWN_SECONDS: Minimum time between two notifications for one key
        DETECTION_MEMORY_SECONDS: Short memory window of the live detection loop
    """
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_prefix="",
        env_nested_delimiter="__"
    )

    # Core Settings
    PROJECT_NAME: str = "Face Watch Service"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"

    # CORS Settings
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins(self) -> List[str]:
        """Get list of allowed origins."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Database Settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./facewatch.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30

    # Embedding model settings
    MODEL_NAME: str = "buffalo_l"
    MODEL_CACHE_DIR: str = ".model_cache"
    MAX_FACES_PER_IMAGE: int = 20
    MIN_FACE_CONFIDENCE: float = 0.8
    MAX_IMAGE_PIXELS: int = 1920 * 1080  # ~2MP (Full HD)
    CAMERA_INDEX: int = 0

    # Matching and clustering settings (L2 distance, lower is stricter)
    LIVE_MATCH_THRESHOLD: float = 0.5
    CLUSTER_THRESHOLD: float = 0.55
    CLUSTER_COMPARISON_MODE: Literal["all_faces", "representative"] = "all_faces"
    EMPTY_IDENTITY_POLICY: Literal["delete", "keep"] = "delete"
    AUTO_SAVE_UNIDENTIFIED: bool = False

    # Notification settings
    NOTIFICATION_COOLDOWN_SECONDS: float = 60.0
    DETECTION_MEMORY_SECONDS: float = 10.0
    HISTORY_LIMIT: int = 20

    # Optional settings with defaults
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

settings = Settings()

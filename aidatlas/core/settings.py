"""
Core settings and environment variables for AidAtlas.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "AidAtlas"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Frontend URLs allowed to access this API (comma separated)
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080"

    # Firebase (Firestore + Authentication)
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON

    # Sessions - Firebase session cookies minted from client ID tokens
    SESSION_COOKIE_NAME: str = "session"
    SESSION_EXPIRES_DAYS: int = 5
    SESSION_COOKIE_SECURE: bool = False
    SIGN_IN_PATH: str = "/auth"

    # Serverless functions
    # - FUNCTIONS_BASE_URL: remote functions host; when unset, handlers run in-process
    FUNCTIONS_BASE_URL: Optional[str] = None
    FUNCTIONS_TIMEOUT_SECONDS: float = 10.0

    # Map rendering
    MAPBOX_PUBLIC_TOKEN: Optional[str] = None
    MAP_STYLE: str = "mapbox://styles/mapbox/streets-v12"

    # AI classification
    AI_ENABLED: bool = True  # If False, only the keyword classifier is used
    AI_PROVIDER: str = "gemini"  # "gemini" or "openai"
    GEMINI_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    AI_TIMEOUT_SECONDS: float = 10.0

    # Geocoding (address -> coordinates for the request form)
    GEOCODING_USER_AGENT: str = "aidatlas/0.1"
    GEOCODING_TIMEOUT_SECONDS: float = 3.0

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()

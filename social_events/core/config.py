from pydantic import SecretStr
from pydantic_settings import BaseSettings
from typing import List, Optional
from functools import lru_cache
from urllib.parse import quote_plus

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables or a .env file.
    """
    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    CORS_ORIGINS: List[str] = ["*"]

    # MongoDB Configuration
    # A full connection string wins over the Atlas credentials below.
    MONGODB_URI: Optional[str] = None
    DB_USER: Optional[str] = None
    DB_PASS: Optional[SecretStr] = None
    DB_HOST: str = "cluster0.dnvpf65.mongodb.net"
    DB_NAME: str = "social-events"

    # Firebase Configuration
    # Base64-encoded service account JSON
    FB_SERVICE_KEY: Optional[SecretStr] = None
    GOOGLE_CLOUD_PROJECT: Optional[str] = None
    # For local development, path to service account key json file
    GOOGLE_APPLICATION_CREDENTIALS: Optional[str] = None

    # Logging level
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'

    @property
    def mongodb_uri(self) -> str:
        if self.MONGODB_URI:
            return self.MONGODB_URI
        if self.DB_USER and self.DB_PASS:
            user = quote_plus(self.DB_USER)
            password = quote_plus(self.DB_PASS.get_secret_value())
            return f"mongodb+srv://{user}:{password}@{self.DB_HOST}/?retryWrites=true&w=majority"
        return "mongodb://localhost:27017"

@lru_cache()
def get_settings() -> Settings:
    """
    Returns a cached instance of the Settings object.
    """
    return Settings()

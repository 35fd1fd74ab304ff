"""
Core configuration settings for the Title LSH Server
"""
from typing import Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings"""

    # Database Configuration
    POSTGRES_USER: str = "app_user"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: str = "5432"
    POSTGRES_DB: str = "patchyvideo"
    DATABASE_URL: Optional[str] = None  # Overrides the POSTGRES_* parts when set

    # Security
    API_KEY: str = "default_key"

    # Server Configuration
    PORT: int = 5010
    HOST: str = "0.0.0.0"

    # Application Settings
    APP_NAME: str = "Title LSH Server"
    APP_DESCRIPTION: str = "MinHash-LSH near-duplicate lookup for video titles"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # MinHash index
    INDEX_NAME: str = "video_title_minhash"
    NUM_HASHES: int = 120
    NUM_BANDS: Optional[int] = 40
    TARGET_JACCARD_SIMILARITY: Optional[float] = None
    SHINGLE_SIZE: int = 3
    CANDIDATE_OVERSHOOT: Optional[int] = 4

    @property
    def database_url(self) -> str:
        """Construct database URL"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    class Config:
        env_file = ".env"


# Global settings instance
settings = Settings()

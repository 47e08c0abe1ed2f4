from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import os


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Sehat Sathi"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    TESTING: bool = os.getenv("TESTING", "0").lower() in ("1", "true", "t", "yes", "y")
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./sehat_sathi.db"
    TEST_DATABASE_URL: str = "sqlite:///./test.db"

    # Security
    SECRET_KEY: str = "your-secret-key-change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    BCRYPT_ROUNDS: int = 12

    # Redis (rate limiting and token revocation)
    REDIS_URL: str = "redis://localhost:6379"
    RATE_LIMIT_PER_HOUR: int = 10

    # Scheduling
    DEFAULT_APPOINTMENT_DURATION: int = 30
    MIN_APPOINTMENT_DURATION: int = 15

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5500", "http://localhost:3000", "http://testserver"]

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def get_database_url(self):
        """Return the appropriate database URL based on if we're testing"""
        if self.TESTING:
            return self.TEST_DATABASE_URL
        return self.DATABASE_URL


# Create settings instance
settings = Settings()

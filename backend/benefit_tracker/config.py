"""Application configuration."""
from functools import lru_cache
import logging
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # App
    app_name: str = "Use Your Benefits"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    
    # Paths
    base_dir: Path = Path(__file__).parent
    configs_dir: Path = base_dir / "configs" / "cards"
    data_dir: Path = Path("./data")
    user_data_path: Path | None = None
    
    # Reminders
    reminder_days: int = 30
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Only accept standard logging level names."""
        normalized = value.strip().upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"LOG_LEVEL must be a logging level name, got '{value}'.")
        return normalized

    @field_validator("reminder_days")
    @classmethod
    def validate_reminder_days(cls, value: int) -> int:
        if value < 1:
            raise ValueError("REMINDER_DAYS must be at least 1.")
        return value

    @model_validator(mode="after")
    def default_user_data_path(self) -> "Settings":
        """Keep the user data file inside DATA_DIR unless set explicitly."""
        if self.user_data_path is None:
            self.user_data_path = self.data_dir / "user-benefits.json"
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

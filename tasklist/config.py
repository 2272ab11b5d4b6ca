"""
tasklist - Configuration
Application settings, read from TASKLIST_* environment variables or a .env file.
The defaults reproduce the stand-alone behaviour: ./tasks.db served on localhost:8080.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).parent

class Settings(BaseSettings):
    """Settings of the task list server"""

    model_config = SettingsConfigDict(
        env_prefix="TASKLIST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== MAIN =====

    APP_NAME: str = Field(default="Task List", description="Title shown on the page")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False, description="Debug mode (docs, reload, verbose logs)")

    # ===== NETWORK =====

    HOST: str = Field(default="localhost")
    PORT: int = Field(default=8080)

    # ===== STORAGE =====

    DATABASE_URL: str = Field(
        default="sqlite:///./tasks.db",
        description="SQLAlchemy URL of the task database"
    )

    # ===== PATHS =====

    TEMPLATES_DIR: Path = Field(default=PACKAGE_DIR / "templates")
    STATIC_DIR: Path = Field(default=PACKAGE_DIR / "static")

    # ===== LOGGING =====

    LOG_LEVEL: str = Field(default="INFO", description="DEBUG/INFO/WARNING/ERROR/CRITICAL")
    LOG_FORMAT: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    LOG_DATE_FORMAT: str = Field(default="%Y-%m-%d %H:%M:%S")
    LOG_FILE: Optional[Path] = Field(default=None, description="Rotating log file, off when unset")

    # ===== VALIDATORS =====

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    def get_full_url(self, path: str = "") -> str:
        return f"http://{self.HOST}:{self.PORT}/{path.lstrip('/')}"

settings = Settings()

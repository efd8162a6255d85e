"""
Core configuration module.
Organized into separate settings classes, one per concern, each with its own env prefix.
"""

import json
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseSettings):
    """API configuration settings."""

    app_name: str = "Field Engineer CRM"
    app_version: str = "1.0.0"
    debug: bool = False
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 5000

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    url: str
    pool_size: int = 10
    max_overflow: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800  # 30 minutes
    echo: bool = False

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("url", mode="before")
    @classmethod
    def use_async_driver(cls, v):
        """Hosted Postgres providers hand out plain postgres:// URLs; force asyncpg."""
        if isinstance(v, str):
            if v.startswith("postgres://"):
                return "postgresql+asyncpg://" + v[len("postgres://"):]
            if v.startswith("postgresql://"):
                return "postgresql+asyncpg://" + v[len("postgresql://"):]
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class CORSSettings(BaseSettings):
    """CORS configuration settings."""

    origins: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("origins", mode="before")
    @classmethod
    def parse_origins(cls, v):
        """Parse origins from JSON array string or comma-separated list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class FileUploadSettings(BaseSettings):
    """Chat attachment upload settings."""

    max_upload_size: int = 10_485_760  # 10MB
    upload_dir: str = "./uploads"
    public_base_url: str = "http://localhost:5000"
    allowed_extensions: List[str] = [
        "jpg",
        "jpeg",
        "png",
        "gif",
        "pdf",
        "doc",
        "docx",
        "xls",
        "xlsx",
        "txt",
        "log",
        "zip",
    ]

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def parse_allowed_extensions(cls, v):
        if isinstance(v, str):
            return [ext.strip().lower().lstrip(".") for ext in v.split(",") if ext.strip()]
        return v

    model_config = SettingsConfigDict(
        env_prefix="UPLOAD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class ChatSettings(BaseSettings):
    """Chat message lifecycle settings."""

    edit_window_minutes: int = Field(
        default=5,
        ge=0,
        description="Messages can be edited or deleted only this long after creation",
    )
    retention_days: int = Field(
        default=30,
        ge=1,
        description="Messages older than this are removed by the daily retention sweep",
    )
    retention_cron_hour: int = Field(default=0, ge=0, le=23)
    retention_cron_minute: int = Field(default=0, ge=0, le=59)
    max_message_length: int = 10_000

    model_config = SettingsConfigDict(
        env_prefix="CHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class RealtimeSettings(BaseSettings):
    """Socket.IO live channel settings."""

    socketio_path: str = "socket.io"
    observers_room: str = "observers"
    ping_interval: int = 25
    ping_timeout: int = 20

    model_config = SettingsConfigDict(
        env_prefix="REALTIME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration settings."""

    enabled: bool = True
    login_per_minute: int = 20
    upload_per_minute: int = 30

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class PerformanceSettings(BaseSettings):
    """Performance configuration settings."""

    enable_query_logging: bool = False

    model_config = SettingsConfigDict(
        env_prefix="PERFORMANCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: str = "INFO"
    enable_file_logging: bool = True
    log_dir: str = "logs"
    max_size: int = 10_485_760  # 10MB
    backup_count: int = 5
    enable_console_logging: bool = True

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def log_config(self) -> dict:
        """Get logging configuration."""
        return {
            "level": self.level,
            "enable_file_logging": self.enable_file_logging,
            "log_dir": self.log_dir,
            "max_file_size": self.max_size,
            "backup_count": self.backup_count,
            "enable_console": self.enable_console_logging,
        }


class Settings(BaseSettings):
    """Main application settings."""

    api: APISettings = APISettings()
    database: DatabaseSettings = DatabaseSettings()
    cors: CORSSettings = CORSSettings()
    file_upload: FileUploadSettings = FileUploadSettings()
    chat: ChatSettings = ChatSettings()
    realtime: RealtimeSettings = RealtimeSettings()
    rate_limit: RateLimitSettings = RateLimitSettings()
    performance: PerformanceSettings = PerformanceSettings()
    logging: LoggingSettings = LoggingSettings()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global settings instance
settings = Settings()

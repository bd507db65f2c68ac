"""Configuration management for the application form auto-filler."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Configuration
    debug: bool = Field(False, description="Enable debug mode")
    log_level: str = Field("INFO", description="Logging level")

    # Browser Configuration
    browser_headless: bool = Field(True, description="Run browser in headless mode")
    browser_timeout: int = Field(30, description="Browser operation timeout in seconds")
    browser_user_data_dir: Optional[str] = Field(None, description="Browser user data directory")

    # Storage Configuration
    storage_path: str = Field("./data/autofill_store.json", description="Local key-value store file")
    audit_log_capacity: int = Field(50, description="Maximum number of fill log entries kept")

    # Profile Service
    profile_api_url: Optional[str] = Field(None, description="Base URL of the profile service")
    profile_api_token: Optional[str] = Field(None, description="Bearer token for the profile service")
    profile_request_timeout: float = Field(10.0, description="Profile request timeout in seconds")

    # Notifications
    notify_webhook_url: Optional[str] = Field(None, description="Webhook receiving auto-fill events")

    # Detection
    wait_for_element_timeout_ms: int = Field(4000, description="Ceiling for element waits in ms")

    # Human pacing (milliseconds)
    typing_delay_min_ms: int = Field(30, description="Minimum delay between keystrokes")
    typing_delay_max_ms: int = Field(100, description="Maximum delay between keystrokes")
    chunk_delay_min_ms: int = Field(50, description="Minimum delay between textarea chunks")
    chunk_delay_max_ms: int = Field(150, description="Maximum delay between textarea chunks")
    field_delay_min_ms: int = Field(100, description="Minimum delay between fields")
    field_delay_max_ms: int = Field(500, description="Maximum delay between fields")
    textarea_chunk_size: int = Field(10, description="Characters typed per textarea chunk")

    # Fill defaults
    skip_demographics_default: bool = Field(True, description="Skip demographic fields unless asked")


# Global settings instance
settings = Settings()

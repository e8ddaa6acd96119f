"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

import tempfile
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Asymptote Geometry MCP Server", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # MCP Server Configuration
    server_name: str = Field(default="mcp-geo", description="MCP server name")
    display_name: str = Field(
        default="Asymptote Geometry Renderer", description="Human readable server name"
    )
    description: str = Field(
        default="Renders precise geometric images using Asymptote code.",
        description="Server description sent to clients as instructions",
    )

    # Renderer Configuration
    asy_command: str = Field(default="asy", description="Asymptote executable name or path")
    default_format: str = Field(default="svg", description="Default output format")
    default_render_level: int = Field(
        default=4, gt=0, description="Default PNG render (antialiasing) level"
    )
    temp_path: Optional[Path] = Field(
        default=None, description="Directory for per-request temporary files"
    )
    render_timeout: Optional[float] = Field(
        default=None, gt=0, description="Render timeout in seconds, None waits indefinitely"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: Optional[Path] = Field(default=None, description="Optional rotating log file")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("default_format")
    @classmethod
    def validate_default_format(cls, v: str) -> str:
        """Validate default output format."""
        allowed = {"svg", "png"}
        if v.lower() not in allowed:
            raise ValueError(f"Default format must be one of: {allowed}")
        return v.lower()

    @field_validator("temp_path")
    @classmethod
    def create_directories(cls, v: Optional[Path]) -> Optional[Path]:
        """Ensure the temp directory exists."""
        if v is not None:
            v.mkdir(parents=True, exist_ok=True)
        return v

    @property
    def work_dir(self) -> Path:
        """Directory where request files are written."""
        return self.temp_path if self.temp_path is not None else Path(tempfile.gettempdir())

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="MCP_GEO_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings

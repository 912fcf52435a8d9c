"""
Collage Studio Configuration
============================

This module handles configuration loading for the collage service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    COLLAGE_CAPACITY             -> collage.capacity
    COLLAGE_THROTTLE_WINDOW      -> collage.throttle_window_seconds
    COLLAGE_FINGERPRINT_STRATEGY -> fingerprint.strategy
    COLLAGE_OUTPUT_DIR           -> persistence.output_dir
    COLLAGE_PORT                 -> server.port
    COLLAGE_LOG_LEVEL            -> logging.level
    PORT                         -> server.port (Cloud Run)

Example:
    from collage_studio.config import settings

    print(settings.collage.capacity)
    print(settings.collage.throttle_window_seconds)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="collage-studio", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class CollageConfig(BaseModel):
    """Working set and broadcast configuration."""

    capacity: int = Field(
        default=6,
        ge=1,
        description="Maximum number of images in the working set",
    )
    throttle_window_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Minimum interval between broadcast deliveries",
    )


class FingerprintConfig(BaseModel):
    """Uniqueness fingerprint configuration."""

    strategy: Literal["png_length", "sha256"] = Field(
        default="png_length",
        description="Fingerprint strategy: 'png_length' (parity) or 'sha256'",
    )


class PreviewConfig(BaseModel):
    """Preview rendering configuration."""

    width: int = Field(default=600, ge=1, description="Preview width in pixels")
    height: int = Field(default=400, ge=1, description="Preview height in pixels")
    thumbnail_size: int = Field(
        default=22,
        ge=1,
        description="Edge length of the navigation thumbnail",
    )


class PersistenceConfig(BaseModel):
    """Photo writer configuration."""

    output_dir: str = Field(
        default="./saved",
        description="Directory where saved collages are written",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for Collage Studio.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    collage: CollageConfig = Field(default_factory=CollageConfig)
    fingerprint: FingerprintConfig = Field(default_factory=FingerprintConfig)
    preview: PreviewConfig = Field(default_factory=PreviewConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/app/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    # Build settings object
    settings = Settings.model_validate(config_data)

    return settings


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Collage settings
    if env_capacity := os.environ.get("COLLAGE_CAPACITY"):
        config_data.setdefault("collage", {})["capacity"] = int(env_capacity)
    if env_window := os.environ.get("COLLAGE_THROTTLE_WINDOW"):
        config_data.setdefault("collage", {})["throttle_window_seconds"] = float(env_window)

    # Fingerprint settings
    if env_strategy := os.environ.get("COLLAGE_FINGERPRINT_STRATEGY"):
        config_data.setdefault("fingerprint", {})["strategy"] = env_strategy

    # Persistence settings
    if env_output := os.environ.get("COLLAGE_OUTPUT_DIR"):
        config_data.setdefault("persistence", {})["output_dir"] = env_output

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("COLLAGE_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("COLLAGE_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)

"""
Configuration management for yeectl.

Loads YAML configuration files and provides typed access to settings.
"""

from pathlib import Path
from typing import Optional, Union
import yaml
from pydantic import BaseModel, Field


# Packaged with yeectl as package data
DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


class BulbConfig(BaseModel):
    """Configuration for a bulb session."""
    host: Optional[str] = Field(default=None, description="Bulb host name or IP address")
    port: int = Field(default=55443, ge=1, le=65535, description="Control port")
    timeout: Optional[float] = Field(
        default=5.0, gt=0, description="Socket timeout in seconds (null blocks forever)"
    )
    start_id: int = Field(default=0, ge=0, description="First command id of a session")
    verify_response_id: bool = Field(
        default=False, description="Reject replies whose id differs from the command id"
    )
    strict_rgb: bool = Field(
        default=False, description="Clamp RGB channels to 0-255 instead of letting them overflow"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging."""
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        description="Log format"
    )


class Config(BaseModel):
    """Root configuration for yeectl."""
    bulb: BulbConfig = Field(default_factory=BulbConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Optional[Union[str, Path]] = None) -> Config:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML config file. If None, uses default config.

    Returns:
        Config object with loaded settings.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path = Path(config_path)

    if not config_path.exists():
        # Return default config if file doesn't exist
        return Config()

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}

    return Config(**data)


def save_config(config: Config, config_path: Union[str, Path]) -> None:
    """
    Save configuration to a YAML file.

    Args:
        config: Config object to save.
        config_path: Path to save the YAML file.
    """
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)

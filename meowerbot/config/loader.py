"""Configuration loading utilities."""

import json
from pathlib import Path

from loguru import logger

from meowerbot.config.schema import BotConfig


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".meowerbot" / "config.json"


def load_config(config_path: Path | None = None) -> BotConfig:
    """
    Load configuration from file, falling back to defaults.

    Environment variables still apply on top of the file contents.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return BotConfig(**data)
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Using default configuration.")

    return BotConfig()


def save_config(config: BotConfig, config_path: Path | None = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = config.model_dump(exclude={"password"})
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")

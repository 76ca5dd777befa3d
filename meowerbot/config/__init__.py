"""Configuration module for meowerbot."""

from meowerbot.config.loader import get_config_path, load_config, save_config
from meowerbot.config.schema import BotConfig, EndpointsConfig, MessagesConfig

__all__ = [
    "BotConfig",
    "EndpointsConfig",
    "MessagesConfig",
    "get_config_path",
    "load_config",
    "save_config",
]

"""Configuration schema using Pydantic."""

from typing import Literal
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class MessagesConfig(BaseModel):
    """
    Texts the bot sends to users.

    Argument templates are str.format strings:
    - args_missing: {name}
    - args_not_in_set: {value}, {options}
    - arg_nan: {value}
    """
    help_description: str = "Shows this message."
    help_commands: str = "## Commands"
    banned: str = "You are banned from using this bot."
    admin_locked: str = "You can't use this command as it is limited to administrators."
    error: str = "💥 Something exploded. Check the console for more info!"
    args_missing: str = "Missing {name}."
    args_not_in_set: str = "{value} has to be one of {options}."
    arg_nan: str = "{value} is not a number."
    too_many_args: str = "You have too many arguments."


class EndpointsConfig(BaseModel):
    """Where the Meower services live."""
    api_url: str = "https://api.meower.org"
    stream_url: str = "wss://server.meower.org"
    uploads_url: str = "https://uploads.meower.org"
    timeout_seconds: float = 30.0


class BotConfig(BaseSettings):
    """
    Root configuration for a bot.

    Loaded from ~/.meowerbot/config.json and overridable through
    MEOWERBOT_* environment variables (nested with __).
    """
    username: str = ""
    password: str = ""
    admins: list[str] = Field(default_factory=list)  # May run admin commands
    banned: list[str] = Field(default_factory=list)  # May not run any command
    help: bool = True  # Register the generated help command
    dispatch_edits: bool = False  # Also run commands on edited posts
    logging_level: Literal["none", "base", "ws"] = "base"
    extensions: list[str] = Field(default_factory=list)  # Modules with setup(bot)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)
    endpoints: EndpointsConfig = Field(default_factory=EndpointsConfig)

    class Config:
        env_prefix = "MEOWERBOT_"
        env_nested_delimiter = "__"

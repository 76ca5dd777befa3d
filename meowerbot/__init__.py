"""
meowerbot - command bots for Meower.
"""

__version__ = "0.3.0"
__logo__ = "🐱"

from meowerbot.bot import MeowerBot
from meowerbot.config.schema import BotConfig, MessagesConfig
from meowerbot.models.post import Post
from meowerbot.session import Session

__all__ = [
    "MeowerBot",
    "BotConfig",
    "MessagesConfig",
    "Post",
    "Session",
    "__version__",
    "__logo__",
]

"""Live domain objects."""

from meowerbot.models.post import Post, PostState, PostStore, Reaction

__all__ = ["Post", "PostState", "PostStore", "Reaction"]

"""Package for drafting note.com articles from GitHub issues with OpenAI."""

__all__ = ["config", "models", "workflow"]

"""FastAPI surface of collabide."""

from collabide.web.app import create_app

__all__ = ["create_app"]

"""collabide: agent action execution and live presence for a shared browser IDE."""

from collabide.config import APP_VERSION

__version__ = APP_VERSION

__all__ = ["__version__"]

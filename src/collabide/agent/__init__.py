"""Agent protocol: parsing model output into typed actions."""

from .parser import parse_actions

__all__ = ["parse_actions"]

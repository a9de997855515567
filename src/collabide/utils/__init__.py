"""Utility helpers for collabide."""

from collabide.utils.settings import load_settings, save_settings

__all__ = ["load_settings", "save_settings"]

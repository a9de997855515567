"""Configuration constants for the collabide backend."""

from __future__ import annotations

import os
from pathlib import Path

APP_NAME: str = "collabide"
APP_VERSION: str = "0.3.0"

DATA_DIR: Path = Path.home() / ".collabide"
DEFAULT_SCRATCH_ROOT: Path = Path(os.getcwd()) / "temp"

COMMAND_TIMEOUT_SECONDS: float = 10.0
MAX_COMMAND_OUTPUT_CHARS: int = 20_000

DEFAULT_COMPLETION_MODEL: str = "claude-sonnet-4-5-20250929"
AGENT_TEMPERATURE: float = 0.3
AGENT_MAX_TOKENS: int = 3000
ASSIST_TEMPERATURE: float = 0.7
ASSIST_MAX_TOKENS: int = 1000
CONTEXT_MESSAGE_LIMIT: int = 10

APOLOGY_MESSAGE: str = "I apologize, but I was unable to process your request."
WELCOME_MESSAGE: str = "Connected to collabide collaboration server"

DEFAULT_USER_ID: str = "temp-user-id"
DEFAULT_USER_NAME: str = "Temp User"

CORS_ORIGINS: list[str] = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]

__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "DATA_DIR",
    "DEFAULT_SCRATCH_ROOT",
    "COMMAND_TIMEOUT_SECONDS",
    "MAX_COMMAND_OUTPUT_CHARS",
    "DEFAULT_COMPLETION_MODEL",
    "AGENT_TEMPERATURE",
    "AGENT_MAX_TOKENS",
    "ASSIST_TEMPERATURE",
    "ASSIST_MAX_TOKENS",
    "CONTEXT_MESSAGE_LIMIT",
    "APOLOGY_MESSAGE",
    "WELCOME_MESSAGE",
    "DEFAULT_USER_ID",
    "DEFAULT_USER_NAME",
    "CORS_ORIGINS",
]

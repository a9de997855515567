import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from collabide import config

logger = logging.getLogger(__name__)

DEFAULT_COMPLETION_MODEL = config.DEFAULT_COMPLETION_MODEL
DEFAULT_ANTHROPIC_API_KEY = ""
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3001

# Environment variable -> settings key. Environment values win over the file
# but are never written back to it.
ENVIRONMENT_OVERRIDES: Dict[str, str] = {
    "ANTHROPIC_API_KEY": "anthropic_api_key",
    "COLLABIDE_ANTHROPIC_API_KEY": "anthropic_api_key",
    "COLLABIDE_MODEL": "completion_model",
    "COLLABIDE_COMMAND_TIMEOUT": "command_timeout",
    "COLLABIDE_TEMPERATURE": "temperature",
    "COLLABIDE_MAX_TOKENS": "max_tokens",
    "COLLABIDE_CONTEXT_MESSAGES": "context_messages",
    "COLLABIDE_SCRATCH_ROOT": "scratch_root",
    "COLLABIDE_PERSIST": "persist",
    "COLLABIDE_HOST": "host",
    "COLLABIDE_PORT": "port",
}


def _ensure_int_setting(
    settings: Dict[str, Any],
    key: str,
    default: int,
    *,
    minimum: int,
    maximum: int,
) -> bool:
    """Coerce an integer value into ``[minimum, maximum]``."""
    value = settings.get(key, default)
    try:
        value = int(value)
    except (TypeError, ValueError):
        value = default

    value = max(minimum, min(maximum, value))
    if settings.get(key) != value:
        settings[key] = value
        return True
    return False


def _ensure_float_setting(
    settings: Dict[str, Any],
    key: str,
    default: float,
    *,
    minimum: float,
    maximum: float,
) -> bool:
    """Coerce a float value into ``[minimum, maximum]``."""
    value = settings.get(key, default)
    try:
        value = float(value)
    except (TypeError, ValueError):
        value = default

    value = max(minimum, min(maximum, value))
    if settings.get(key) != value:
        settings[key] = value
        return True
    return False


def _ensure_bool_setting(settings: Dict[str, Any], key: str, default: bool) -> bool:
    value = settings.get(key, default)
    if isinstance(value, bool):
        normalized = value
    elif isinstance(value, str):
        normalized = value.strip().lower() in {"1", "true", "yes", "on"}
    else:
        normalized = bool(value)

    if settings.get(key) != normalized:
        settings[key] = normalized
        return True
    return False


def _ensure_str_setting(settings: Dict[str, Any], key: str, default: str) -> bool:
    value = settings.get(key)
    normalized = value.strip() if isinstance(value, str) else ""
    if not normalized:
        normalized = default
    if settings.get(key) != normalized:
        settings[key] = normalized
        return True
    return False


def _default_settings() -> Dict[str, Any]:
    """Return a fresh copy of default settings."""
    return {
        "anthropic_api_key": DEFAULT_ANTHROPIC_API_KEY,
        "completion_model": DEFAULT_COMPLETION_MODEL,
        "command_timeout": config.COMMAND_TIMEOUT_SECONDS,
        "temperature": config.AGENT_TEMPERATURE,
        "max_tokens": config.AGENT_MAX_TOKENS,
        "assist_temperature": config.ASSIST_TEMPERATURE,
        "assist_max_tokens": config.ASSIST_MAX_TOKENS,
        "context_messages": config.CONTEXT_MESSAGE_LIMIT,
        "scratch_root": str(config.DEFAULT_SCRATCH_ROOT),
        "persist": True,
        "host": DEFAULT_HOST,
        "port": DEFAULT_PORT,
    }


def normalize_settings(settings: Dict[str, Any]) -> bool:
    """
    Clamp and fill every known setting in place.

    Returns:
        bool: True if any value was changed.
    """
    updated = False
    updated |= _ensure_str_setting(settings, "completion_model", DEFAULT_COMPLETION_MODEL)
    updated |= _ensure_float_setting(
        settings,
        "command_timeout",
        config.COMMAND_TIMEOUT_SECONDS,
        minimum=0.5,
        maximum=300.0,
    )
    updated |= _ensure_float_setting(
        settings,
        "temperature",
        config.AGENT_TEMPERATURE,
        minimum=0.0,
        maximum=1.0,
    )
    updated |= _ensure_float_setting(
        settings,
        "assist_temperature",
        config.ASSIST_TEMPERATURE,
        minimum=0.0,
        maximum=1.0,
    )
    updated |= _ensure_int_setting(
        settings,
        "max_tokens",
        config.AGENT_MAX_TOKENS,
        minimum=256,
        maximum=64_000,
    )
    updated |= _ensure_int_setting(
        settings,
        "assist_max_tokens",
        config.ASSIST_MAX_TOKENS,
        minimum=256,
        maximum=64_000,
    )
    updated |= _ensure_int_setting(
        settings,
        "context_messages",
        config.CONTEXT_MESSAGE_LIMIT,
        minimum=0,
        maximum=100,
    )
    updated |= _ensure_str_setting(settings, "scratch_root", str(config.DEFAULT_SCRATCH_ROOT))
    updated |= _ensure_bool_setting(settings, "persist", True)
    updated |= _ensure_str_setting(settings, "host", DEFAULT_HOST)
    updated |= _ensure_int_setting(settings, "port", DEFAULT_PORT, minimum=1, maximum=65_535)
    if not isinstance(settings.get("anthropic_api_key"), str):
        settings["anthropic_api_key"] = DEFAULT_ANTHROPIC_API_KEY
        updated = True
    return updated


def apply_environment_overrides(
    settings: Dict[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Return a copy of ``settings`` with ``COLLABIDE_*`` variables applied."""
    environ = os.environ if environ is None else environ
    merged = dict(settings)
    for variable, key in ENVIRONMENT_OVERRIDES.items():
        value = environ.get(variable)
        if value is not None and value.strip():
            merged[key] = value.strip()
    normalize_settings(merged)
    return merged


def get_settings_path() -> Path:
    """
    Determines the appropriate path for the settings file.

    Returns:
        Path: The path to the settings.json file.
    """
    return config.DATA_DIR / "settings.json"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Loads settings from the settings file and applies environment overrides.

    If the file doesn't exist or is invalid, defaults are used. Values that had
    to be clamped are written back to the file.

    Returns:
        Dict[str, Any]: A dictionary containing the application settings.
    """
    settings_path = get_settings_path()
    if not settings_path.exists():
        logger.info("Settings file not found. Using default settings.")
        return apply_environment_overrides(_default_settings(), environ)

    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            settings = json.load(f)
    except (json.JSONDecodeError, IOError) as exc:
        logger.error("Failed to load or parse settings file: %s. Using defaults.", exc)
        return apply_environment_overrides(_default_settings(), environ)

    if not isinstance(settings, dict):
        logger.error("Settings file does not contain an object. Using defaults.")
        return apply_environment_overrides(_default_settings(), environ)

    if normalize_settings(settings):
        save_settings(settings)
    return apply_environment_overrides(settings, environ)


def save_settings(settings: Dict[str, Any]) -> None:
    """
    Saves the given settings to the settings file.

    Args:
        settings (Dict[str, Any]): A dictionary containing the settings to save.
    """
    settings_path = get_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(settings_path, "w", encoding="utf-8") as f:
            json.dump(settings, f, indent=4)
        logger.info("Settings successfully saved to %s", settings_path)
    except IOError as exc:
        logger.error("Failed to save settings to %s: %s", settings_path, exc)

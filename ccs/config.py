"""Configuration and localisation helpers."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Optional, Tuple

from .constants import (
    CONFIG_FILE,
    DEFAULT_DATA_DIR,
    DEFAULT_LANG_CODE,
    DEFAULT_LANG_KEYS,
    DEFAULT_SILHOUETTE_WIDTH,
    DEFAULT_THEME,
    LANG_DIR,
)

logger = logging.getLogger(__name__)


def ensure_directory(dir_name: str, auto_create: bool = False) -> Tuple[bool, Optional[str]]:
    """Ensure a directory exists, creating it if requested."""
    if os.path.exists(dir_name):
        return True, None

    if not auto_create:
        return False, f"Directory '{dir_name}' does not exist."

    try:
        os.makedirs(dir_name, exist_ok=True)
        return True, None
    except OSError as exc:  # pragma: no cover - filesystem errors are environment specific
        return False, str(exc)


def load_json_config(filepath: str, default_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Load a JSON file, falling back to a copy of the defaults."""
    if os.path.exists(filepath):
        try:
            with open(filepath, "r", encoding="utf-8") as handle:
                return json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read %s: %s", filepath, exc)
            if default_data is not None:
                return default_data.copy()
            return {}

    return default_data.copy() if default_data is not None else {}


def save_json_config(filepath: str, data: Dict[str, Any]) -> bool:
    """Persist data to disk as JSON.

    The document is written to a temporary file beside ``filepath`` and moved
    into place, so an interrupted write never leaves a truncated file behind.
    """
    directory = os.path.dirname(os.path.abspath(filepath))
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=directory)
    except OSError as exc:
        logger.error("Could not write %s: %s", filepath, exc)
        return False

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)
        os.replace(tmp_path, filepath)
        return True
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Could not write %s: %s", filepath, exc)
        try:
            os.remove(tmp_path)
        except OSError:
            pass
        return False


def load_language_file(lang_code: str) -> Optional[Dict[str, Any]]:
    """Load a single language file."""
    lang_file_path = os.path.join(LANG_DIR, f"{lang_code}.json")
    try:
        with open(lang_file_path, "r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError:
        return None
    except (OSError, ValueError):
        logger.warning("Language file %s is unreadable", lang_file_path)
        return None


def load_language_config(lang_code: str) -> Tuple[Dict[str, str], Optional[str], Optional[str]]:
    """Load language configuration returning language data, warning, and critical error."""
    lang_data = load_language_file(lang_code)
    warning = None
    error = None

    if lang_data is None and lang_code != DEFAULT_LANG_CODE:
        warning = DEFAULT_LANG_KEYS["lang_load_error"].format(lang_code=lang_code, lang_dir=LANG_DIR)
        lang_data = load_language_file(DEFAULT_LANG_CODE)

    if lang_data is None:
        error = DEFAULT_LANG_KEYS["lang_default_load_error"].format(lang_code=DEFAULT_LANG_CODE)
        return dict(DEFAULT_LANG_KEYS), warning, error

    # Keys missing from a translation fall back to the built-in English strings.
    merged = dict(DEFAULT_LANG_KEYS)
    merged.update(lang_data)
    return merged, warning, error


def get_available_languages() -> List[Tuple[str, str]]:
    """Return the list of available language codes and display names."""
    languages: List[Tuple[str, str]] = []
    if not os.path.isdir(LANG_DIR):
        return [(DEFAULT_LANG_CODE, DEFAULT_LANG_CODE)]

    for filename in sorted(os.listdir(LANG_DIR)):
        if not filename.endswith(".json"):
            continue

        lang_code = filename[:-5]
        lang_data = load_language_file(lang_code)
        display_name = lang_data.get("language_name", lang_code) if lang_data else lang_code
        languages.append((lang_code, display_name))

    if not languages:
        languages.append((DEFAULT_LANG_CODE, DEFAULT_LANG_CODE))

    return languages


def default_main_config() -> Dict[str, Any]:
    return {
        "language": DEFAULT_LANG_CODE,
        "theme": DEFAULT_THEME,
        "data_dir": DEFAULT_DATA_DIR,
        "silhouette_width": DEFAULT_SILHOUETTE_WIDTH,
    }


def load_main_config(filepath: str = CONFIG_FILE) -> Dict[str, Any]:
    """Load the main application configuration."""
    config_data = default_main_config()
    config_data.update(load_json_config(filepath, {}))
    return config_data


def save_main_config(config: Dict[str, Any], filepath: str = CONFIG_FILE) -> bool:
    """Save the main application configuration."""
    return save_json_config(filepath, config)

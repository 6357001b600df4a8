"""JSON-file backed storage for configuration records."""
from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from typing import Any, Dict, List, Optional

from . import config
from .configuration import Configuration
from .options import CaseOptions

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the store cannot be read or written."""


class ConfigurationNotFoundError(KeyError):
    """Raised when a configuration id is unknown."""


class ConfigurationStore:
    """Keeps every configuration in one JSON document keyed by id.

    Each write is a locked read-modify-write of the whole file, so concurrent
    updates to different fields of the same record never lose each other.
    Updates to the same field are last-writer-wins.
    """

    def __init__(self, filepath: str) -> None:
        self.filepath = filepath
        self._lock = threading.Lock()
        directory = os.path.dirname(filepath)
        if directory:
            config.ensure_directory(directory, auto_create=True)

    def _read(self) -> Dict[str, Dict[str, Any]]:
        # A store that exists but won't parse is an error, never an empty store.
        if not os.path.exists(self.filepath):
            return {}
        try:
            with open(self.filepath, "r", encoding="utf-8") as handle:
                records = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.error("Configuration store %s is unreadable: %s", self.filepath, exc)
            raise StoreError(f"Could not read configuration store '{self.filepath}': {exc}") from exc
        if not isinstance(records, dict):
            raise StoreError(f"Configuration store '{self.filepath}' is not a JSON object")
        return records

    def _write(self, records: Dict[str, Dict[str, Any]]) -> None:
        if not config.save_json_config(self.filepath, records):
            raise StoreError(f"Could not write configuration store '{self.filepath}'")

    def _update(self, config_id: str, **changes: Any) -> Configuration:
        with self._lock:
            records = self._read()
            record = records.get(config_id)
            if record is None:
                raise ConfigurationNotFoundError(config_id)
            record.update(changes)
            self._write(records)
        return Configuration.from_dict(record)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def create(self, image_url: str, width: int, height: int) -> Configuration:
        configuration = Configuration(id=uuid.uuid4().hex, image_url=image_url, width=width, height=height)
        with self._lock:
            records = self._read()
            records[configuration.id] = configuration.to_dict()
            self._write(records)
        logger.info("Created configuration %s (%dx%d)", configuration.id, width, height)
        return configuration

    def get(self, config_id: str) -> Optional[Configuration]:
        with self._lock:
            record = self._read().get(config_id)
        return Configuration.from_dict(record) if record is not None else None

    def list(self) -> List[Configuration]:
        with self._lock:
            records = self._read()
        return [Configuration.from_dict(record) for record in records.values()]

    def set_cropped_image(self, config_id: str, cropped_image_url: str) -> Configuration:
        configuration = self._update(config_id, cropped_image_url=cropped_image_url)
        logger.info("Attached cropped image to configuration %s", config_id)
        return configuration

    def save_options(self, config_id: str, options: CaseOptions) -> Configuration:
        options.validate()
        configuration = self._update(config_id, **options.to_dict())
        logger.info("Saved options for configuration %s: %s", config_id, options.to_dict())
        return configuration

"""JSON file store for the user's list configuration."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from trakt_addon.schemas import ListConfig

logger = logging.getLogger(__name__)


class ListConfigStore:
    """Read and write ``lists.json``; every read goes back to disk."""

    def __init__(self, lists_path: str | Path) -> None:
        self._path = Path(lists_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ListConfig:
        """Return the configuration, creating an empty one on first use."""
        if not self._path.exists():
            logger.info("No list configuration at %s; creating an empty one", self._path)
            empty = ListConfig()
            self._write(empty)
            return empty
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return ListConfig.model_validate(data)
        except (OSError, ValueError, ValidationError) as exc:
            logger.error("Error loading list configuration: %s", exc)
            return ListConfig()

    def save(self, payload: Dict[str, Any]) -> ListConfig:
        """Validate and persist a configuration, bumping its revision."""
        config = ListConfig.model_validate(payload)
        current_revision = self._current_revision()
        config.revision = max(config.revision, current_revision) + 1
        self._write(config)
        logger.info(
            "List configuration saved (%d lists, revision %d)",
            len(config.lists),
            config.revision,
        )
        return config

    def _current_revision(self) -> int:
        if not self._path.exists():
            return 0
        return self.load().revision

    def _write(self, config: ListConfig) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(config.model_dump(by_alias=True), indent=2)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


__all__ = ["ListConfigStore"]

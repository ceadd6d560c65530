"""JSON file store holding the single Trakt credential record."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Optional

from pydantic import ValidationError

from trakt_addon.models.credentials import CredentialRecord, now_ms

logger = logging.getLogger(__name__)


class StoreCorrupt(Exception):
    """Raised when the credential file exists but cannot be parsed."""


class CredentialStore:
    """Durable persistence of one token record with backup-on-write.

    Nothing is cached in memory: every ``load`` re-reads the file so edits
    made by another process or by hand are observed.
    """

    def __init__(
        self,
        token_path: str | Path,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._path = Path(token_path)
        self._clock = clock
        if self._path.parent and not self._path.parent.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        return self._path.with_name(f"{self._path.stem}.backup{self._path.suffix}")

    def exists(self) -> bool:
        return self._path.exists()

    def read(self) -> Optional[CredentialRecord]:
        """Read the record, raising ``StoreCorrupt`` when the file is unreadable."""
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise StoreCorrupt(f"{self._path} does not contain a JSON object")
            return CredentialRecord.model_validate(data)
        except (OSError, ValueError, ValidationError) as exc:
            raise StoreCorrupt(f"Failed to parse {self._path}: {exc}") from exc

    def load(self) -> Optional[CredentialRecord]:
        """Read the record; a corrupt file is reported as absent."""
        try:
            return self.read()
        except StoreCorrupt as exc:
            logger.error("Ignoring unreadable credential file: %s", exc)
            return None

    def save(self, record: CredentialRecord) -> CredentialRecord:
        """Back up the current file, then atomically replace it with ``record``."""
        now = self._clock()
        update = {"saved_at": now}
        if record.expires_in and not record.expires_at:
            update["expires_at"] = now + record.expires_in * 1000
        stored = record.model_copy(update=update)

        if self._path.exists():
            try:
                shutil.copyfile(self._path, self.backup_path)
                logger.debug("Credential backup updated at %s", self.backup_path)
            except OSError as exc:
                logger.warning("Failed to back up credential file: %s", exc)

        payload = json.dumps(stored.model_dump(exclude_none=True), indent=2)
        self._atomic_write(payload)
        logger.info(
            "Credentials saved to %s (expires_at=%s)", self._path, stored.expires_at
        )
        return stored

    def clear(self) -> Optional[Path]:
        """Move the live file aside under a timestamped name. No-op when absent."""
        if not self._path.exists():
            return None
        backup = self._path.with_name(
            f"{self._path.stem}.backup.{self._clock()}{self._path.suffix}"
        )
        shutil.copyfile(self._path, backup)
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        logger.info("Credentials cleared; previous record kept at %s", backup)
        return backup

    def _atomic_write(self, payload: str) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


__all__ = ["CredentialStore", "StoreCorrupt"]

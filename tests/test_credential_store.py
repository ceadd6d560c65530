from __future__ import annotations

import json
from pathlib import Path

import pytest

from trakt_addon.clients.credential_store import CredentialStore, StoreCorrupt
from trakt_addon.models.credentials import CredentialRecord

NOW = 1_700_000_000_000


class FrozenClock:
    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now


def _store(tmp_path: Path, clock: FrozenClock | None = None) -> CredentialStore:
    return CredentialStore(tmp_path / "trakt_tokens.json", clock=clock or FrozenClock())


def test_load_returns_none_when_file_missing(tmp_path: Path) -> None:
    store = _store(tmp_path)
    assert store.load() is None


def test_load_treats_corrupt_file_as_absent(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.path.write_text("{not json", encoding="utf-8")

    assert store.load() is None
    with pytest.raises(StoreCorrupt):
        store.read()


def test_save_derives_expires_at_from_expires_in(tmp_path: Path) -> None:
    store = _store(tmp_path)

    store.save(CredentialRecord(access_token="abc", expires_in=3600))

    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert data["saved_at"] == NOW
    assert data["expires_at"] == data["saved_at"] + 3_600_000


def test_save_keeps_explicit_expires_at(tmp_path: Path) -> None:
    store = _store(tmp_path)

    stored = store.save(
        CredentialRecord(access_token="abc", expires_in=3600, expires_at=NOW + 42)
    )

    assert stored.expires_at == NOW + 42


def test_save_writes_single_rolling_backup(tmp_path: Path) -> None:
    clock = FrozenClock()
    store = _store(tmp_path, clock)

    store.save(CredentialRecord(access_token="first", expires_in=60))
    assert not store.backup_path.exists()

    clock.now += 1000
    store.save(CredentialRecord(access_token="second", expires_in=60))
    clock.now += 1000
    store.save(CredentialRecord(access_token="third", expires_in=60))

    backup = json.loads(store.backup_path.read_text(encoding="utf-8"))
    assert backup["access_token"] == "second"
    assert store.load().access_token == "third"
    backups = sorted(p.name for p in tmp_path.glob("trakt_tokens.backup*.json"))
    assert backups == ["trakt_tokens.backup.json"]


def test_save_leaves_no_temporary_files(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save(CredentialRecord(access_token="abc", expires_in=60))

    leftovers = [p.name for p in tmp_path.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []


def test_save_preserves_unknown_fields(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save(CredentialRecord(access_token="abc", expires_in=60, scope="public"))

    assert store.load().model_extra == {"scope": "public"}


def test_load_observes_out_of_process_edits(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save(CredentialRecord(access_token="abc", expires_in=60))

    store.path.write_text(json.dumps({"access_token": "edited"}), encoding="utf-8")

    assert store.load().access_token == "edited"


def test_clear_creates_timestamped_backup_and_removes_file(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save(CredentialRecord(access_token="abc", expires_in=60))

    backup = store.clear()

    assert backup is not None
    assert backup.name == f"trakt_tokens.backup.{NOW}.json"
    assert json.loads(backup.read_text(encoding="utf-8"))["access_token"] == "abc"
    assert not store.exists()
    assert store.load() is None


def test_clear_twice_is_a_noop(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.save(CredentialRecord(access_token="abc", expires_in=60))

    assert store.clear() is not None
    assert store.clear() is None

"""Tests for the deployment preflight script."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from scripts import check_env
from trakt_addon.clients import CredentialStore
from trakt_addon.models.credentials import CredentialRecord, now_ms

REQUIRED_ENV_KEYS = [
    "TRAKT_CLIENT_ID",
    "TRAKT_CLIENT_SECRET",
]

HOUR_MS = 3_600_000


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


def _clear_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in REQUIRED_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def env_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A valid env file with ``DATA_DIR`` pointing at ``tmp_path / 'data'``."""
    path = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("TMDB_API_KEY", raising=False)
    monkeypatch.delenv("OMDB_API_KEY", raising=False)
    _write_env(path, TRAKT_CLIENT_ID="abc", TRAKT_CLIENT_SECRET="secret")
    return path


def _seed_token(data_dir: Path, **overrides) -> None:
    values = {
        "access_token": "stored-access",
        "refresh_token": "stored-refresh",
        "expires_at": now_ms() + 5 * HOUR_MS + 60_000,
        "expires_in": 86400,
    }
    values.update(overrides)
    CredentialStore(data_dir / "trakt_tokens.json").save(CredentialRecord(**values))


def test_missing_explicit_env_file_is_a_runtime_error(tmp_path: Path) -> None:
    exit_code = check_env.main(["--env-file", str(tmp_path / ".missing-env")])

    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_validation_failure_for_missing_required_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    env_file = tmp_path / ".env"
    _clear_required_env(monkeypatch)
    _write_env(env_file, TRAKT_CLIENT_ID="abc")

    assert check_env.main(["--env-file", str(env_file)]) == check_env.EXIT_VALIDATION_ERROR


def test_validation_failure_for_invalid_refresh_buffer(
    env_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TOKEN_REFRESH_BUFFER_SECONDS", "0")

    assert check_env.main(["--env-file", str(env_file)]) == check_env.EXIT_VALIDATION_ERROR


def test_fresh_deployment_passes_and_creates_data_dir(
    tmp_path: Path,
    env_file: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("TMDB_API_KEY", "tmdb-key")

    exit_code = check_env.main(["--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_OK
    assert (tmp_path / "data").is_dir()
    assert list((tmp_path / "data").iterdir()) == []
    output = capsys.readouterr().out
    assert "trakt_tokens.json" in output
    assert "lists.json" in output
    assert "Poster sources: TMDB" in output
    assert "Data directory writable." in output
    assert "No Trakt tokens stored" in output


def test_unwritable_data_dir_is_a_storage_error(
    tmp_path: Path, env_file: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setenv("DATA_DIR", str(blocker))

    assert check_env.main(["--env-file", str(env_file)]) == check_env.EXIT_STORAGE_ERROR


def test_unreadable_list_configuration_is_a_storage_error(
    tmp_path: Path, env_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    lists_path = tmp_path / "data" / "config" / "lists.json"
    lists_path.parent.mkdir(parents=True)
    lists_path.write_text("{not json", encoding="utf-8")

    assert check_env.main(["--env-file", str(env_file)]) == check_env.EXIT_STORAGE_ERROR
    assert "lists.json" in capsys.readouterr().err


def test_list_configuration_is_summarized(
    tmp_path: Path, env_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    lists_path = tmp_path / "data" / "config" / "lists.json"
    lists_path.parent.mkdir(parents=True)
    lists_path.write_text(json.dumps({"lists": [], "revision": 3}), encoding="utf-8")

    assert check_env.main(["--env-file", str(env_file)]) == check_env.EXIT_OK
    assert "Configured lists: 0 (revision 3)" in capsys.readouterr().out


def test_corrupt_token_file_is_a_token_error(
    tmp_path: Path, env_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "trakt_tokens.json").write_text("[]", encoding="utf-8")

    assert check_env.main(["--env-file", str(env_file)]) == check_env.EXIT_TOKEN_ERROR
    assert "corrupt" in capsys.readouterr().err


def test_stored_token_expiry_is_reported(
    tmp_path: Path, env_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _seed_token(tmp_path / "data")

    exit_code = check_env.main(["--env-file", str(env_file), "--require-token"])

    assert exit_code == check_env.EXIT_OK
    output = capsys.readouterr().out
    assert "Token status:   valid for 5h" in output
    assert "Refresh token:  yes" in output
    assert "Needs refresh:  no" in output


def test_require_token_without_tokens_fails(env_file: Path) -> None:
    exit_code = check_env.main(["--env-file", str(env_file), "--require-token"])

    assert exit_code == check_env.EXIT_TOKEN_ERROR


def test_require_token_with_expired_unrefreshable_token_fails(
    tmp_path: Path, env_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _seed_token(tmp_path / "data", refresh_token=None, expires_at=now_ms() - HOUR_MS)

    exit_code = check_env.main(["--env-file", str(env_file), "--require-token"])

    assert exit_code == check_env.EXIT_TOKEN_ERROR
    assert "Token status:   expired" in capsys.readouterr().out

"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from reliability_backend.config import Settings, StoreKind
from reliability_backend.store import JsonFileStore, MemoryStore


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for var in ("DATA_DIR", "STORE", "LOG_LEVEL", "HOST", "PORT"):
        monkeypatch.delenv(f"RELIABILITY_{var}", raising=False)
    # Keep a stray .env in the working directory out of the picture
    monkeypatch.chdir(tmp_path)


def test_defaults() -> None:
    settings = Settings()

    assert settings.store == StoreKind.FILE
    assert settings.log_level == "INFO"
    assert (settings.host, settings.port) == ("127.0.0.1", 8765)
    assert isinstance(settings.create_store(), JsonFileStore)


def test_memory_store_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RELIABILITY_STORE", "memory")
    assert isinstance(Settings().create_store(), MemoryStore)


def test_data_dir_reaches_file_store(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RELIABILITY_DATA_DIR", str(tmp_path / "data"))

    store = Settings().create_store()

    assert isinstance(store, JsonFileStore)
    assert store.directory == tmp_path / "data"


def test_log_level_is_normalised(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RELIABILITY_LOG_LEVEL", "debug")
    assert Settings().log_level == "DEBUG"


def test_invalid_log_level_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RELIABILITY_LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        Settings()


@pytest.mark.parametrize("port", ["0", "70000", "not-a-port"])
def test_invalid_port_is_rejected(monkeypatch: pytest.MonkeyPatch, port: str) -> None:
    monkeypatch.setenv("RELIABILITY_PORT", port)
    with pytest.raises(ValidationError):
        Settings()

"""Shared fixtures: every test gets private XDG dirs and a fresh store."""

import logging

import pytest

from tnote.store import Store


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point config and data dirs at tmp_path so tests never see real notes."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("TNOTE_DB", raising=False)
    monkeypatch.delenv("TNOTE_LOG_LEVEL", raising=False)
    monkeypatch.setenv("NO_COLOR", "1")

    # main() reconfigures root logging; put it back afterwards
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield tmp_path
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "notes.db"


@pytest.fixture
def store(db_path):
    with Store(db_path, lock_timeout=0.2) as s:
        yield s

import logging
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    """Keep the user's real global rule file and log directory out of tests"""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("APPDATA", str(home / "AppData"))
    monkeypatch.delenv("AGENT_IGNORE_GLOBAL_FILE", raising=False)
    monkeypatch.delenv("AGENT_TOOLS_LOG_LEVEL", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setattr(Path, "home", lambda: home)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Directory tree for rule files, outside the fake home"""
    root = tmp_path / "work"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def write_rules():
    def _write(directory: Path, content: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        rule_file = directory / ".agentignore"
        rule_file.write_text(content, encoding="utf-8")
        return rule_file

    return _write


@pytest.fixture
def touch():
    def _touch(path: Path, content: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _touch


@pytest.fixture
def global_file(tmp_path: Path):
    """Write a global rule file at a test-owned location and return its path"""
    def _write(content) -> Path:
        path = tmp_path / "config" / "agent" / "ignore"
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)

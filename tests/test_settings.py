import logging
from pathlib import Path

from stronghold.config import Settings
from stronghold.logging_config import configure_logging


def test_defaults_from_empty_environment():
    s = Settings.from_env({})
    assert s.root is None
    assert s.log_level is None


def test_root_and_level_from_environment(tmp_path: Path):
    s = Settings.from_env({"STRONGHOLD_ROOT": str(tmp_path), "STRONGHOLD_LOG_LEVEL": "debug"})
    assert s.root == tmp_path
    assert s.log_level == "debug"


def test_blank_values_are_ignored():
    s = Settings.from_env({"STRONGHOLD_ROOT": "   ", "STRONGHOLD_LOG_LEVEL": ""})
    assert s == Settings()


def test_configure_logging_respects_level(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.update(kw))
    configure_logging(settings=Settings(log_level="debug"))
    assert calls["level"] == logging.DEBUG


def test_configure_logging_ignores_unknown_level(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.update(kw))
    configure_logging(default_level=logging.WARNING, settings=Settings(log_level="basicConfig"))
    assert calls["level"] == logging.WARNING

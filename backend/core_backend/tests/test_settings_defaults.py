"""
Environment-driven settings defaults.

The settings module is loaded under a private name so the active Django
configuration is left untouched.
"""
import importlib.util
from pathlib import Path

import pytest

SETTINGS_PATH = Path(__file__).resolve().parent.parent / "settings.py"


def load_settings(monkeypatch, **env):
    for name in ("DEBUG", "REDIS_URL", "CELERY_TASK_ALWAYS_EAGER"):
        monkeypatch.delenv(name, raising=False)
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    spec = importlib.util.spec_from_file_location("settings_under_test", SETTINGS_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestCeleryEagerDefault:
    def test_tasks_queue_outside_debug_without_redis(self, monkeypatch):
        loaded = load_settings(monkeypatch)

        assert loaded.REDIS_URL == ""
        assert loaded.CELERY_TASK_ALWAYS_EAGER is False

    def test_debug_without_redis_runs_inline(self, monkeypatch):
        loaded = load_settings(monkeypatch, DEBUG="true")

        assert loaded.CELERY_TASK_ALWAYS_EAGER is True

    def test_debug_with_redis_queues(self, monkeypatch):
        loaded = load_settings(monkeypatch, DEBUG="true", REDIS_URL="redis://localhost:6379/0")

        assert loaded.CELERY_TASK_ALWAYS_EAGER is False

    @pytest.mark.parametrize("flag, expected", [("true", True), ("false", False)])
    def test_explicit_flag_wins(self, monkeypatch, flag, expected):
        loaded = load_settings(monkeypatch, CELERY_TASK_ALWAYS_EAGER=flag)

        assert loaded.CELERY_TASK_ALWAYS_EAGER is expected

# tests/conftest.py

from __future__ import annotations

import sys
from collections.abc import Iterator

import pytest

from verco.config import Settings, clear_settings_cache
from verco.core import ActionResult, Application, Worker


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep tests away from user config files and log directories."""
    monkeypatch.setenv("VERCO_LOG_TO_FILE", "false")
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture()
def settings() -> Settings:
    return Settings(log_to_file=False)


@pytest.fixture()
def worker() -> Iterator[Worker[str, ActionResult]]:
    w: Worker[str, ActionResult] = Worker(poll_interval=0.005)
    yield w
    if w.is_running:
        w.stop()


@pytest.fixture()
def application() -> Iterator[Application]:
    app = Application(poll_interval=0.005)
    yield app
    app.stop()


def python_command(code: str) -> list[str]:
    """Command line running ``code`` with the current interpreter."""
    return [sys.executable, "-c", code]

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

from grounded_search_mcp.config import Settings
from grounded_search_mcp.mcp_server.entry import build_engine
from grounded_search_mcp.mcp_server.mcp import SessionEngine
from grounded_search_mcp.observability import LOGGER_NAME, NullLogger
from grounded_search_mcp.search import FakeSearchClient


SRC_DIR = Path(__file__).resolve().parents[1] / "src"


@pytest.fixture
def tmp_workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Provide an isolated working directory for tests that write to disk using
    relative paths.
    """
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def mock_clock(monkeypatch: pytest.MonkeyPatch) -> float:
    """Freeze time.time() to a deterministic value."""
    import time

    fixed = 1_700_000_000.0
    monkeypatch.setattr(time, "time", lambda: fixed)
    return fixed


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Drop handlers installed by setup_logging so they do not leak across tests."""
    yield
    lg = logging.getLogger(LOGGER_NAME)
    for h in list(lg.handlers):
        lg.removeHandler(h)
        h.close()


@pytest.fixture
def settings() -> Settings:
    s = Settings()
    s.gemini.api_key = "test-key"
    s.gemini.model_name = "test-model"
    return s


@pytest.fixture
def fake_client() -> FakeSearchClient:
    return FakeSearchClient(text="answer to: {prompt}")


@pytest.fixture
def engine(settings: Settings, fake_client: FakeSearchClient) -> SessionEngine:
    return build_engine(settings, NullLogger(), client=fake_client)


@pytest.fixture
def subprocess_env() -> dict[str, str]:
    """Environment for spawning `python -m grounded_search_mcp...` from a source checkout."""
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (str(SRC_DIR), env.get("PYTHONPATH", "")) if p)
    env["PYTHONUNBUFFERED"] = "1"
    for var in ("GEMINI_API_KEY", "HTTP_PORT", "HTTP_AUTH_TOKEN", "HTTP_ALLOWED_ORIGINS", "LOG_PATH"):
        env.pop(var, None)
    return env


@pytest.fixture
def python() -> str:
    return sys.executable


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """
    Default behavior: only run unit tests.

    If the user explicitly provides `-m ...`, we respect it and do not apply
    any extra deselection logic.
    """
    if config.option.markexpr:
        return

    deselect: list[pytest.Item] = []
    keep: list[pytest.Item] = []

    for item in items:
        if item.get_closest_marker("integration"):
            deselect.append(item)
        else:
            keep.append(item)

    if deselect:
        config.hook.pytest_deselected(items=deselect)
        items[:] = keep

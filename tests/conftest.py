"""Shared fixtures for the Custos test suite."""

import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from custos.config import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop CUSTOS_* variables from the outer shell and reset cached settings."""
    for name in list(os.environ):
        if name.startswith("CUSTOS_"):
            monkeypatch.delenv(name)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Empty config directory under tmp_path."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Write TOML files into test_config_dir.

    Usage:
        mock_toml_files({"default.toml": "app_name = 'test'"})
    """

    def _write(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _write

"""Shared fixtures: keep tests away from the real ~/.kushn config."""

from __future__ import annotations

from pathlib import Path

import pytest

from kushn import config as config_mod


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config directory at a fresh temp location (outside tmp_path)."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setattr(config_mod, "_global_config_dir", lambda: home / ".kushn")
    return home

"""Shared fixtures: sample lyrics and a configuration built from defaults."""

import pytest

from lyricline.config import ConfigManager

SAMPLE_LRC = "[00:12.50][00:45.00]Hello world\n[01:00.00]Goodbye\n"


@pytest.fixture
def sample_lrc():
	return SAMPLE_LRC


@pytest.fixture
def config_manager(monkeypatch, tmp_path):
	for name in ("LYRICLINE_ENDPOINT", "LYRICLINE_LOG_LEVEL", "MPD_HOST", "MPD_PORT", "MPD_PASSWORD", "DEBUG"):
		monkeypatch.delenv(name, raising=False)
	manager = ConfigManager(use_default=True)
	manager.LOG_DIR = str(tmp_path / "logs")
	return manager

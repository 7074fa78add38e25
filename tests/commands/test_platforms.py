"""Tests for the platform listing and settings commands."""

from argparse import Namespace

import pytest

from grd.commands.init_config import InitConfigHandler
from grd.commands.platforms import PlatformsHandler
from grd.config import ConfigManager


@pytest.mark.asyncio
async def test_lists_supported_platforms(capsys):
    await PlatformsHandler(ConfigManager()).execute(Namespace())

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "Supported platforms:"
    assert "  linux-x86_64" in lines
    assert "  macos-aarch64" in lines
    assert "  windows-x86_64" in lines


@pytest.mark.asyncio
async def test_init_config_writes_settings_file(tmp_path, capsys):
    manager = ConfigManager(tmp_path / "grd")

    await InitConfigHandler(manager).execute(Namespace())

    assert manager.settings_file.exists()
    assert "memory_limit" in manager.settings_file.read_text()
    assert str(manager.settings_file) in capsys.readouterr().out


@pytest.mark.asyncio
async def test_init_config_keeps_existing_values(tmp_path):
    manager = ConfigManager(tmp_path / "grd")
    config = manager.load_global_config()
    config["memory_limit"] = 4096
    manager.save_global_config(config)

    await InitConfigHandler(manager).execute(Namespace())

    assert manager.load_global_config()["memory_limit"] == 4096

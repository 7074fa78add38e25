"""Tests for CLI command routing and error handling."""

import logging
from unittest.mock import AsyncMock

import pytest

from grd.cli.runner import CLIRunner
from grd.exceptions import NoMatchingAssetError
from grd.logger import get_logger


@pytest.fixture
def runner():
    instance = CLIRunner()
    for name, handler in instance.command_handlers.items():
        handler.execute = AsyncMock(name=name)
    return instance


@pytest.mark.parametrize(
    ("argv", "command"),
    [
        (["octo/cli"], "install"),
        (["octo/cli", "--list"], "releases"),
        (["--list-platforms"], "platforms"),
        (["--init-config"], "init-config"),
    ],
)
@pytest.mark.asyncio
async def test_routes_to_handler(runner, argv, command):
    await runner.run(argv)

    for name, handler in runner.command_handlers.items():
        if name == command:
            handler.execute.assert_awaited_once()
        else:
            handler.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_grd_error_exits_with_its_code(runner, capsys):
    runner.command_handlers["install"].execute.side_effect = NoMatchingAssetError(
        "No matching asset found for linux-x86_64", repository="octo/cli"
    )

    with pytest.raises(SystemExit) as exc_info:
        await runner.run(["octo/cli"])

    assert exc_info.value.code == 6
    assert "No matching asset found" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_keyboard_interrupt_exits_130(runner):
    runner.command_handlers["install"].execute.side_effect = KeyboardInterrupt

    with pytest.raises(SystemExit) as exc_info:
        await runner.run(["octo/cli"])

    assert exc_info.value.code == 130


@pytest.mark.asyncio
async def test_unexpected_error_exits_1(runner, capsys):
    runner.command_handlers["install"].execute.side_effect = RuntimeError("boom")

    with pytest.raises(SystemExit) as exc_info:
        await runner.run(["octo/cli"])

    assert exc_info.value.code == 1
    assert "boom" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_verbose_level_is_restored(runner):
    console = get_logger("grd").logger.handlers[0]
    before = console.level
    seen = []

    async def record(_args):
        seen.append(console.level)

    runner.command_handlers["install"].execute.side_effect = record

    await runner.run(["octo/cli", "--verbose"])

    assert seen == [logging.DEBUG]
    assert console.level == before

#!/usr/bin/env python3
"""Tests for one-shot clipboard read/write commands.

Uses mocked subprocesses to avoid touching the real clipboard.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from linkfixer.clipboard_commands import (
    PBCOPY,
    WINDOWS_POWERSHELL,
    WL_CLIPBOARD,
    XCLIP,
    XSEL,
    detect_backend,
    read_clipboard,
    write_clipboard,
)
from linkfixer.errors import ClipboardError, UnsupportedPlatformError

SPAWN = "linkfixer.clipboard_commands.asyncio.create_subprocess_exec"


def make_which(*available: str):
    """Return a shutil.which replacement knowing only available."""
    return lambda name: f"/usr/bin/{name}" if name in available else None


def make_process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
    """Create a mock asyncio subprocess."""
    proc = MagicMock()
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.wait = AsyncMock(return_value=returncode)
    proc.returncode = returncode
    return proc


class TestDetectBackend:
    """Tests for per-platform backend selection."""

    def test_windows(self) -> None:
        assert detect_backend("win32", {}, make_which()) is WINDOWS_POWERSHELL

    def test_macos(self) -> None:
        assert detect_backend("darwin", {}, make_which()) is PBCOPY

    def test_wayland(self) -> None:
        env = {"WAYLAND_DISPLAY": "wayland-0", "DISPLAY": ":0"}
        which = make_which("wl-paste", "wl-copy", "xclip")
        assert detect_backend("linux", env, which) is WL_CLIPBOARD

    def test_x11_prefers_xclip(self) -> None:
        which = make_which("xclip", "xsel")
        assert detect_backend("linux", {"DISPLAY": ":0"}, which) is XCLIP

    def test_x11_falls_back_to_xsel(self) -> None:
        assert detect_backend("linux", {"DISPLAY": ":0"}, make_which("xsel")) is XSEL

    def test_no_backend_raises(self) -> None:
        with pytest.raises(UnsupportedPlatformError, match="xclip"):
            detect_backend("linux", {}, make_which("xclip"))


class TestReadClipboard:
    """Tests for read_clipboard."""

    @pytest.mark.asyncio
    async def test_returns_decoded_text(self) -> None:
        proc = make_process(stdout="héllo\n".encode("utf-8"))
        with patch(SPAWN, new_callable=AsyncMock, return_value=proc) as mock_spawn:
            assert await read_clipboard(XCLIP) == "héllo\n"
        assert mock_spawn.call_args.args == XCLIP.read_command

    @pytest.mark.asyncio
    async def test_powershell_trims_one_line_terminator(self) -> None:
        proc = make_process(stdout=b"text \r\n")
        with patch(SPAWN, new_callable=AsyncMock, return_value=proc):
            assert await read_clipboard(WINDOWS_POWERSHELL) == "text "

    @pytest.mark.asyncio
    async def test_powershell_read_requests_utf8_output(self) -> None:
        proc = make_process(stdout="café https://youtube.com/shorts/x\r\n".encode("utf-8"))
        with patch(SPAWN, new_callable=AsyncMock, return_value=proc) as mock_spawn:
            assert await read_clipboard(WINDOWS_POWERSHELL) == "café https://youtube.com/shorts/x"
        script = mock_spawn.call_args.args[-1]
        assert script.startswith("[Console]::OutputEncoding = [System.Text.Encoding]::UTF8;")
        assert script.endswith("Get-Clipboard -Raw")

    @pytest.mark.asyncio
    async def test_failure_without_output_is_empty_clipboard(self) -> None:
        proc = make_process(stderr=b"Error: target STRING not available", returncode=1)
        with patch(SPAWN, new_callable=AsyncMock, return_value=proc):
            assert await read_clipboard(XCLIP) == ""

    @pytest.mark.asyncio
    async def test_failure_with_output_raises(self) -> None:
        proc = make_process(stdout=b"partial", stderr=b"bad", returncode=2)
        with patch(SPAWN, new_callable=AsyncMock, return_value=proc):
            with pytest.raises(ClipboardError, match="exited 2"):
                await read_clipboard(XCLIP)

    @pytest.mark.asyncio
    async def test_missing_binary_raises(self) -> None:
        with patch(SPAWN, new_callable=AsyncMock, side_effect=FileNotFoundError("xclip")):
            with pytest.raises(ClipboardError, match="Cannot run xclip"):
                await read_clipboard(XCLIP)

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self) -> None:
        proc = make_process()
        proc.communicate = AsyncMock(side_effect=asyncio.TimeoutError)
        with patch(SPAWN, new_callable=AsyncMock, return_value=proc):
            with pytest.raises(ClipboardError, match="timed out"):
                await read_clipboard(XCLIP, timeout=0.1)
        proc.kill.assert_called_once()


class TestWriteClipboard:
    """Tests for write_clipboard."""

    @pytest.mark.asyncio
    async def test_text_sent_on_stdin(self) -> None:
        proc = make_process()
        with patch(SPAWN, new_callable=AsyncMock, return_value=proc) as mock_spawn:
            await write_clipboard(XCLIP, "new text")
        assert mock_spawn.call_args.args == XCLIP.write_command
        assert mock_spawn.call_args.kwargs["stdout"] == asyncio.subprocess.DEVNULL
        proc.communicate.assert_awaited_once_with(b"new text")

    @pytest.mark.asyncio
    async def test_powershell_embeds_text_in_command(self) -> None:
        proc = make_process()
        with patch(SPAWN, new_callable=AsyncMock, return_value=proc) as mock_spawn:
            await write_clipboard(WINDOWS_POWERSHELL, "it's\nhere")
        argv = mock_spawn.call_args.args
        assert argv[0] == "powershell.exe"
        assert argv[-1].startswith("Set-Clipboard")
        proc.communicate.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_failure_raises(self) -> None:
        proc = make_process(returncode=1)
        with patch(SPAWN, new_callable=AsyncMock, return_value=proc):
            with pytest.raises(ClipboardError, match="write exited 1"):
                await write_clipboard(WL_CLIPBOARD, "text")

"""
Tests for the external tool adapter. No tool is actually run: the subprocess
call and pyserial's port listing are mocked.
"""
import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mbox_builder import helper as helper_mod
from mbox_builder.helper import Helper, HelperError, build_flags, parse_chip_id
from mbox_builder.model import BuildOptions, Credentials, Port

ESPTOOL_CHIP_ID = b"""esptool.py v4.8.1
Serial port /dev/ttyUSB0
Connecting....
Chip is ESP8266EX
Chip ID: 0x00a1b2c3
Hard resetting via RTS pin...
"""

ESPTOOL_ESP32 = b"""Chip is ESP32-D0WD-V3 (revision v3.1)
Warning: ESP32 has no Chip ID. Reading MAC instead.
MAC: 24:0a:c4:12:34:56
"""


def make_process(stdout=b"", stderr=b"", returncode=0):
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.returncode = returncode
    return process


@pytest.fixture
def helper():
    return Helper(esptool="esptool", pio="pio")


@pytest.fixture
def firmware_dir(tmp_path):
    (tmp_path / "platformio.ini").write_text("[env:mbox]\nplatform = espressif32\n")
    return tmp_path


class TestParsing:

    def test_chip_id(self):
        assert parse_chip_id(ESPTOOL_CHIP_ID.decode()) == "0x00a1b2c3"

    def test_falls_back_to_mac(self):
        assert parse_chip_id(ESPTOOL_ESP32.decode()) == "24:0a:c4:12:34:56"

    def test_nothing_found(self):
        assert parse_chip_id("Connecting....") is None

    def test_build_flags(self):
        flags = build_flags(BuildOptions(chip_id="ABC123", max_slaves=2, trial_mode=True, trial_time=60))
        assert flags == '-DMBOX_CHIP_ID=\\"ABC123\\" -DMBOX_MAX_SLAVES=2 -DMBOX_TRIAL_MODE=1 -DMBOX_TRIAL_TIME=60'

    def test_build_flags_defaults(self):
        assert build_flags(BuildOptions()) == "-DMBOX_MAX_SLAVES=4 -DMBOX_TRIAL_MODE=0 -DMBOX_TRIAL_TIME=1440"


class TestOperations:

    @pytest.mark.asyncio
    async def test_get_ports(self, helper, monkeypatch):
        found = [SimpleNamespace(device="/dev/ttyUSB0", manufacturer="Silicon Labs")]
        monkeypatch.setattr(helper_mod, "list_ports", lambda: found)
        assert await helper.get_ports() == [Port(path="/dev/ttyUSB0", manufacturer="Silicon Labs")]

    @pytest.mark.asyncio
    async def test_get_ports_failure(self, helper, monkeypatch):
        def boom():
            raise OSError("no /dev access")
        monkeypatch.setattr(helper_mod, "list_ports", boom)
        with pytest.raises(HelperError, match="no /dev access"):
            await helper.get_ports()

    @pytest.mark.asyncio
    async def test_get_chip_id(self, helper):
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=make_process(ESPTOOL_CHIP_ID))) as spawn:
            assert await helper.get_chip_id("/dev/ttyUSB0") == "0x00a1b2c3"
        assert spawn.call_args.args == ("esptool", "--port", "/dev/ttyUSB0", "chip_id")

    @pytest.mark.asyncio
    async def test_get_chip_id_unparsable(self, helper):
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=make_process(b"Connecting....\n"))):
            with pytest.raises(HelperError, match="chip id"):
                await helper.get_chip_id("/dev/ttyUSB0")

    @pytest.mark.asyncio
    async def test_erase_failure_carries_last_error_line(self, helper):
        process = make_process(stderr=b"Connecting......\nA fatal error occurred: Failed to connect\n", returncode=2)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(HelperError, match="A fatal error occurred: Failed to connect"):
                await helper.erase_flash("/dev/ttyUSB0")

    @pytest.mark.asyncio
    async def test_missing_tool(self, helper):
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError())):
            with pytest.raises(HelperError, match="esptool command not found"):
                await helper.erase_flash("/dev/ttyUSB0")

    @pytest.mark.asyncio
    async def test_tool_not_executable(self, helper):
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=PermissionError(13, "Permission denied"))):
            with pytest.raises(HelperError, match="Could not run esptool: .*Permission denied"):
                await helper.erase_flash("/dev/ttyUSB0")

    @pytest.mark.asyncio
    async def test_timeout(self, helper):
        process = make_process()
        process.communicate = AsyncMock(side_effect=asyncio.TimeoutError())
        process.wait = AsyncMock(return_value=-9)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(HelperError, match="TimeoutExpired"):
                await helper.erase_flash("/dev/ttyUSB0")
        process.kill.assert_called_once()

    @pytest.mark.asyncio
    async def test_build_and_upload(self, helper, firmware_dir):
        options = BuildOptions(chip_id="ABC123", max_slaves=3)
        auth = Credentials(username="octocat", password="s3cret")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=make_process())) as spawn:
            await helper.build_and_upload(str(firmware_dir), "/dev/ttyUSB0", auth, options)
        assert spawn.call_args.args == (
            "pio", "run", "-d", str(firmware_dir), "-t", "upload", "--upload-port", "/dev/ttyUSB0",
        )
        env = spawn.call_args.kwargs["env"]
        assert env["PLATFORMIO_BUILD_FLAGS"] == build_flags(options)
        assert env["GITHUB_USERNAME"] == "octocat"
        assert env["GITHUB_TOKEN"] == "s3cret"

    @pytest.mark.asyncio
    async def test_build_needs_platformio_project(self, helper, tmp_path):
        with patch("asyncio.create_subprocess_exec", AsyncMock()) as spawn:
            with pytest.raises(HelperError, match="platformio.ini"):
                await helper.build_and_upload(str(tmp_path), "/dev/ttyUSB0", Credentials("u", "p"))
        spawn.assert_not_called()

    @pytest.mark.asyncio
    async def test_upload_webui(self, helper, firmware_dir):
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=make_process())) as spawn:
            await helper.upload_webui(str(firmware_dir), "/dev/ttyUSB0")
        assert "uploadfs" in spawn.call_args.args

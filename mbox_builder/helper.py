"""
Device and firmware operations.

Nothing here talks to the board directly: ports come from pyserial, chip id and
flash erase are done by esptool, and firmware is built and uploaded by
PlatformIO. This module only runs those tools and turns their results into
values or HelperError.
"""
from pathlib import Path
import asyncio
import logging
import os
import re

import serial.tools.list_ports

from .model import BuildOptions, Port

log = logging.getLogger(__name__)

ESPTOOL_TIMEOUT = 180 # seconds, erase of a 16MB part is the slow case
PIO_TIMEOUT = 900     # a clean build fetches the toolchain and libraries

CHIP_ID_RE = re.compile(r"Chip ID:\s*(0x[0-9a-fA-F]+)")
MAC_RE = re.compile(r"MAC:\s*((?:[0-9a-fA-F]{2}:){5}[0-9a-fA-F]{2})")


class HelperError(Exception):
    pass


def list_ports():
    return list(serial.tools.list_ports.comports())


def _last_line(text):
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else ""


def build_flags(options):
    flags = [
        f"-DMBOX_MAX_SLAVES={options.max_slaves}",
        f"-DMBOX_TRIAL_MODE={1 if options.trial_mode else 0}",
        f"-DMBOX_TRIAL_TIME={options.trial_time}",
    ]
    if options.chip_id:
        flags.insert(0, f'-DMBOX_CHIP_ID=\\"{options.chip_id}\\"')
    return " ".join(flags)


def parse_chip_id(output):
    match = CHIP_ID_RE.search(output)
    if match:
        return match.group(1)
    # ESP32 parts have no chip id register; esptool prints the MAC instead.
    match = MAC_RE.search(output)
    if match:
        return match.group(1)
    return None


class Helper:
    """Async front for the external tools. One instance per process."""

    def __init__(self, esptool=None, pio=None):
        self.esptool = esptool or os.environ.get("MBOX_ESPTOOL", "esptool")
        self.pio = pio or os.environ.get("MBOX_PIO", "pio")

    async def run_command(self, cmd, timeout=None, env=None):
        log.debug("Running: %s", " ".join(cmd))
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except FileNotFoundError:
            raise HelperError(f"{cmd[0]} command not found. Is it installed and in PATH?")
        except OSError as e:
            raise HelperError(f"Could not run {cmd[0]}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise HelperError(f"TimeoutExpired ({timeout}s) executing {cmd[0]}")

        out = stdout.decode(errors="replace")
        err = stderr.decode(errors="replace")
        log.debug("%s exited with %s", cmd[0], process.returncode)
        if process.returncode != 0:
            detail = _last_line(err) or _last_line(out) or f"exit code {process.returncode}"
            raise HelperError(f"{cmd[0]} failed: {detail}")
        return out

    async def get_ports(self):
        try:
            ports = await asyncio.to_thread(list_ports)
        except Exception as e:
            raise HelperError(f"Could not enumerate serial ports: {e}") from e
        return [Port(path=p.device, manufacturer=p.manufacturer) for p in ports]

    async def get_chip_id(self, port):
        output = await self.run_command([self.esptool, "--port", port, "chip_id"], timeout=ESPTOOL_TIMEOUT)
        chip_id = parse_chip_id(output)
        if not chip_id:
            raise HelperError(f"Could not find a chip id in esptool output: {_last_line(output)}")
        return chip_id

    async def erase_flash(self, port):
        await self.run_command([self.esptool, "--port", port, "erase_flash"], timeout=ESPTOOL_TIMEOUT)

    def _project_dir(self, directory):
        project = Path(directory)
        if not (project / "platformio.ini").is_file():
            raise HelperError(f"No platformio.ini found in '{project}'. Is this a firmware directory?")
        return project

    async def build_and_upload(self, directory, port, auth, options=None):
        project = self._project_dir(directory)
        options = options or BuildOptions()
        env = dict(os.environ)
        env["PLATFORMIO_BUILD_FLAGS"] = build_flags(options)
        env["GITHUB_USERNAME"] = auth.username or ""
        env["GITHUB_TOKEN"] = auth.password or ""
        await self.run_command(
            [self.pio, "run", "-d", str(project), "-t", "upload", "--upload-port", port],
            timeout=PIO_TIMEOUT,
            env=env,
        )

    async def upload_webui(self, directory, port):
        project = self._project_dir(directory)
        await self.run_command(
            [self.pio, "run", "-d", str(project), "-t", "uploadfs", "--upload-port", port],
            timeout=PIO_TIMEOUT,
        )

#!/usr/bin/env python3
"""
mbox_builder.cli

Compile and upload ModbusBox firmware, read the device chip id and erase its
flash over a serial port.

Usage:
  mbox <command> [<args>...]
"""
from importlib import metadata
import argparse
import asyncio
import sys

from . import __description__, __version__
from .app import App
from .config import JsonCredentialStore
from .console import banner, console, setup_logging
from .helper import Helper
from .model import DEFAULT_TRIAL_TIME, UploadOptions
from .prompt import validate_slaves, validate_trial_time

DIST_NAME = "mbox-builder"
ENTRY_POINT = "mbox_builder.cli:main"


def package_info():
    """Program name, version and description from the installed distribution."""
    prog, version, description = "mbox", __version__, __description__
    try:
        dist = metadata.distribution(DIST_NAME)
    except metadata.PackageNotFoundError:
        return prog, version, description
    version = dist.version or version
    description = dist.metadata.get("Summary") or description
    for ep in dist.entry_points:
        if ep.group == "console_scripts" and ep.value == ENTRY_POINT:
            prog = ep.name
            break
    return prog, version, description


def slaves_arg(value):
    try:
        return validate_slaves(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def trial_arg(value):
    try:
        return validate_trial_time(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser():
    prog, version, description = package_info()
    parser = argparse.ArgumentParser(
        prog=prog,
        description=description,
        epilog=f"Use '{prog} <command> --help' for more information on a specific command."
    )
    parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {version}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output (external commands, config paths).")
    subparsers = parser.add_subparsers(dest="cmd", title="Available commands", metavar="<command>")

    subparsers.add_parser("ports", help="List available serial ports.")

    cid_parser = subparsers.add_parser("cid", help="Get device chip id.")
    cid_parser.add_argument("--port", "-p", help="Device port. If omitted, you are asked to pick one.")

    up_parser = subparsers.add_parser("upload", help="Compile and upload firmware.")
    up_parser.add_argument("--port", "-p", help="Device port. If omitted, you are asked to pick one.")
    up_parser.add_argument("--dir", "-d", help="Firmware directory (Default: current working directory).")
    up_parser.add_argument("--lock", "-l", metavar="CHIP_ID", help="Lock firmware to a specific chip id.")
    up_parser.add_argument("--slaves", "-s", type=slaves_arg, metavar="N", help="Maximum number of slaves allowed, 1 to 4 (Default: 4).")
    up_parser.add_argument("--webui", "-w", action="store_true", help="Upload web-ui after uploading the firmware image.")
    up_parser.add_argument("--trial", "-t", type=trial_arg, nargs="?", const=DEFAULT_TRIAL_TIME, metavar="MINUTES", help=f"Enable trial mode (Default time: {DEFAULT_TRIAL_TIME} minutes).")
    up_parser.add_argument("--wizard", "-a", action="store_true", help="Run firmware upload wizard.")

    erase_parser = subparsers.add_parser("erase", help="Erase device flash.")
    erase_parser.add_argument("--port", "-p", help="Device port. If omitted, you are asked to pick one.")

    subparsers.add_parser("config", help="Configuration (GitHub credentials).")
    return parser


async def run(app, args):
    if args.cmd == "ports": return await app.list_serial_ports()
    elif args.cmd == "cid": return await app.get_chip_id(args.port)
    elif args.cmd == "upload":
        options = UploadOptions(
            port=args.port,
            dir=args.dir,
            lock=args.lock,
            slaves=args.slaves,
            webui=args.webui,
            trial=args.trial,
            wizard=args.wizard,
        )
        return await app.upload_firmware(options)
    elif args.cmd == "erase": return await app.erase_flash(args.port)
    elif args.cmd == "config": return await app.show_config_menu()


def main(argv=None, app=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.cmd:
        parser.print_help()
        return 0

    setup_logging(args.verbose)
    if app is None:
        app = App(Helper(), JsonCredentialStore())
        console.clear()
        banner()

    try:
        asyncio.run(run(app, args))
    except (KeyboardInterrupt, EOFError):
        console.print("\nAborted.", style="red")
        return 130
    # Reported failures still exit 0.
    return 0


if __name__ == "__main__":
    sys.exit(main())

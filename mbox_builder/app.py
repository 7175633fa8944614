"""
Command operations.

Every operation follows the same steps: resolve missing inputs, start a spinner,
call the helper, and end the spinner as succeeded, warned or failed. Helper
failures are printed and reported as a False return value, never raised.
"""
from dataclasses import replace
import logging
import os

from . import prompt
from .config import ConfigError
from .console import Spinner, console, ports_table, print_error
from .helper import HelperError
from .model import BuildOptions

log = logging.getLogger(__name__)

CREDENTIALS_NOT_FOUND = "GitHub credentials not found. Run 'mbox config' to set them."
CREDENTIALS_INCOMPLETE = "Stored GitHub credentials are incomplete. Run 'mbox config' to set both fields. Trying anyway."


def mask(secret):
    if not secret:
        return ""
    return secret[:2] + "*" * max(len(secret) - 2, 4)


class App:
    """Application context built once per process by the CLI."""

    def __init__(self, helper, store, cwd=None):
        self.helper = helper
        self.store = store
        self._cwd = cwd

    @property
    def cwd(self):
        return self._cwd or os.getcwd()

    async def resolve_port(self, port=None):
        """Return the port to use, asking the user when none was given. None if unavailable."""
        if port:
            return port
        try:
            selected = await prompt.select_port(self.helper)
        except HelperError as e:
            print_error(e)
            return None
        return selected.path if selected else None

    async def list_serial_ports(self):
        loading = Spinner("Looking for available serial ports").start()
        try:
            ports = await self.helper.get_ports()
        except HelperError as e:
            loading.fail("Could not retrieve serial ports")
            print_error(e)
            return False

        if not ports:
            loading.warn("No serial port available")
            return False

        loading.succeed()
        console.print(ports_table(ports))
        return True

    async def get_chip_id(self, port=None):
        port = await self.resolve_port(port)
        if not port:
            return False

        loading = Spinner().start("Getting chip id from device")
        try:
            chip_id = await self.helper.get_chip_id(port)
        except HelperError as e:
            loading.fail("Could not read chip id from device")
            print_error(e)
            return False
        loading.succeed(f"Chip id: [green]{chip_id}[/green]")
        return True

    async def _wizard_build_options(self, options):
        answers = prompt.ask_upload_wizard(options)
        chip_id = None
        if answers.lock:
            chip_id = options.lock
            if not chip_id:
                loading = Spinner().start("Getting chip id from device")
                try:
                    chip_id = await self.helper.get_chip_id(options.port)
                except HelperError as e:
                    loading.fail("Could not read chip id from device")
                    print_error(e)
                    return None, options
                loading.succeed(f"Firmware will be locked to chip id [green]{chip_id}[/green]")
        build_options = BuildOptions(
            chip_id=chip_id,
            max_slaves=answers.max_slaves,
            trial_mode=answers.trial_mode,
            trial_time=answers.trial_time,
        )
        return build_options, replace(options, webui=answers.webui)

    async def upload_firmware(self, options):
        try:
            found = self.store.exists()
            auth = self.store.retrieve()
        except ConfigError as e:
            print_error(e)
            return False
        if not found:
            console.print(f"[yellow]⚠[/yellow] {CREDENTIALS_NOT_FOUND}")
            return False
        if not auth.is_complete():
            console.print(f"[yellow]⚠[/yellow] {CREDENTIALS_INCOMPLETE}")

        port = await self.resolve_port(options.port)
        if not port:
            return False
        options = replace(options, port=port, dir=options.dir or self.cwd)

        if options.wizard:
            build_options, options = await self._wizard_build_options(options)
            if build_options is None:
                return False
        else:
            build_options = options.build_options()
        log.debug("Uploading %s to %s with %s", options.dir, options.port, build_options)

        loading = Spinner().start("Compiling and uploading firmware")
        try:
            await self.helper.build_and_upload(options.dir, options.port, auth, build_options)
        except HelperError as e:
            loading.fail("An error has occurred trying to build and upload firmware")
            print_error(e)
            return False
        loading.succeed("[bright_green]Firmware successfully uploaded[/bright_green]")

        if options.webui:
            loading.start("Uploading web-ui")
            try:
                await self.helper.upload_webui(options.dir, options.port)
            except HelperError as e:
                loading.fail("An error has occurred trying to upload the web-ui")
                print_error(e)
                return False
            loading.succeed("[bright_green]Web-ui successfully uploaded[/bright_green]")
        return True

    async def erase_flash(self, port=None):
        port = await self.resolve_port(port)
        if not port:
            return False

        loading = Spinner().start("[red]Performing flash erase on device[/red]")
        try:
            await self.helper.erase_flash(port)
        except HelperError as e:
            loading.fail("An error has occurred trying to erase device flash")
            print_error(e)
            return False
        loading.succeed("[bright_green]Device flash has been successfully erased[/bright_green]")
        return True

    def configure_github(self):
        try:
            found = self.store.exists()
            auth = self.store.retrieve()
        except ConfigError as e:
            print_error(e)
            return False
        if found:
            console.print(f"Stored GitHub username: [green]{auth.username or ''}[/green]", highlight=False)
            console.print(f"Stored GitHub password: [green]{mask(auth.password)}[/green]", highlight=False)
            if not prompt.confirm("Overwrite the stored GitHub credentials?"):
                return False

        username, password = prompt.ask_credentials()
        try:
            self.store.store(username, password)
        except ConfigError as e:
            print_error(e)
            return False
        console.print("[green]✔[/green] GitHub credentials saved")
        return True

    async def show_config_menu(self):
        selection = prompt.config_menu()
        if selection == "github":
            return self.configure_github()
        console.print(f"[yellow]⚠[/yellow] '{selection}' configuration is not available yet")
        return False

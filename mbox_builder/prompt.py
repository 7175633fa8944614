"""
Interactive prompts: serial port selection, configuration menu, GitHub
credentials and the firmware upload wizard.
"""
from dataclasses import dataclass
from typing import Optional

from rich.prompt import Confirm, Prompt

from .console import Spinner, console, ports_table
from .helper import HelperError
from .model import DEFAULT_MAX_SLAVES, DEFAULT_TRIAL_TIME, Port

CONFIG_MENU_CHOICES = [
    ("GitHub Credentials", "github"),
    ("Default Building Options", "building"),
    ("Debug Info", "debug"),
]

SLAVES_MESSAGE = "Please enter a number between 1 and 4"
TRIAL_TIME_MESSAGE = "Please enter the trial time in minutes"


@dataclass
class WizardAnswers:
    lock: bool
    max_slaves: int
    trial_mode: bool
    trial_time: int
    webui: bool


def validate_slaves(value):
    try:
        slaves = int(str(value).strip())
    except ValueError:
        raise ValueError(SLAVES_MESSAGE)
    if not 0 < slaves < 5:
        raise ValueError(SLAVES_MESSAGE)
    return slaves


def validate_trial_time(value):
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValueError(TRIAL_TIME_MESSAGE)


def validate_required(value):
    if not value or not value.strip():
        raise ValueError("This field is required")
    return value


def ask(message, validator=None, default=None, password=False):
    """Prompt until validator accepts the answer. Returns the validated value."""
    kwargs = {"password": password, "console": console}
    if default is not None:
        kwargs["default"] = default
    while True:
        answer = Prompt.ask(message, **kwargs)
        if validator is None:
            return answer
        try:
            return validator(answer)
        except ValueError as e:
            console.print(f">> {e}", style="red")


def confirm(message, default=False):
    return Confirm.ask(message, default=default, console=console)


def choose(message, choices):
    """Numbered single choice. choices is a list of (name, value) pairs."""
    for number, (name, _) in enumerate(choices, start=1):
        console.print(f"  {number}) {name}")
    numbers = [str(n) for n in range(1, len(choices) + 1)]
    answer = Prompt.ask(f"{message} [1-{len(choices)}]", choices=numbers, show_choices=False, console=console)
    return choices[int(answer) - 1][1]


async def select_port(helper) -> Optional[Port]:
    """
    Show available serial ports and return the one selected.

    Returns None when no port is available. HelperError from the port lookup is
    re-raised after the spinner has been failed.
    """
    loading = Spinner("Looking for available serial ports").start()
    try:
        ports = await helper.get_ports()
    except HelperError:
        loading.fail("Could not retrieve serial ports")
        raise

    if not ports:
        loading.warn("No serial port available")
        return None

    loading.succeed()
    console.print(ports_table(ports))
    path = choose("Please select a port", [(port.path, port.path) for port in ports])
    return next(port for port in ports if port.path == path)


def config_menu():
    return choose("What would you like to configure?", CONFIG_MENU_CHOICES)


def ask_credentials():
    username = ask("GitHub username", validator=validate_required).strip()
    password = ask("GitHub password", validator=validate_required, password=True)
    return username, password


def ask_upload_wizard(options):
    """Ask for the build options the upload command leaves open."""
    lock = confirm("Lock firmware to the connected device's chip id?", default=bool(options.lock))
    slaves = ask(
        "Maximum number of slaves allowed",
        validator=validate_slaves,
        default=str(options.slaves or DEFAULT_MAX_SLAVES),
    )
    trial_mode = confirm("Enable trial mode?", default=options.trial is not None)
    trial_time = options.trial if options.trial is not None else DEFAULT_TRIAL_TIME
    if trial_mode:
        trial_time = ask("Trial time (minutes)", validator=validate_trial_time, default=str(trial_time))
    webui = confirm("Upload web-ui after the firmware?", default=options.webui)
    return WizardAnswers(
        lock=lock,
        max_slaves=slaves,
        trial_mode=trial_mode,
        trial_time=trial_time,
        webui=webui,
    )

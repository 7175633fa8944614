import logging

from rich.align import Align
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


class Spinner:
    """Progress indicator that ends as succeeded, warned or failed."""

    def __init__(self, text="", out=None):
        self.text = text
        self.out = out or console
        self._status = None

    def start(self, text=None):
        if text:
            self.text = text
        self._status = self.out.status(self.text)
        self._status.start()
        return self

    def _stop(self, symbol, text):
        if self._status is not None:
            self._status.stop()
            self._status = None
        self.out.print(f"{symbol} {text or self.text}")

    def succeed(self, text=None):
        self._stop("[green]✔[/green]", text)

    def warn(self, text=None):
        self._stop("[yellow]⚠[/yellow]", text)

    def fail(self, text=None):
        self._stop("[red]✖[/red]", text)


def print_error(error, out=None):
    # TODO: only show the detailed message when --verbose is given.
    (out or console).print(f"Error: {error}", style="red", markup=False, highlight=False)


def ports_table(ports):
    table = Table()
    table.add_column("Path", style="blue", width=25)
    table.add_column("Manufacturer", style="blue", width=25)
    for port in ports:
        table.add_row(port.path, port.manufacturer or "")
    return table


def banner(out=None):
    (out or console).print(Panel(Align.center("[bold bright_cyan]MBox Builder[/bold bright_cyan]")))


def setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )

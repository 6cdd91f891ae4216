"""Console output helpers for the CLI."""

from rich.console import Console
from rich.markup import escape


class Output:
    """Styled messages; errors and hints go to stderr, results to stdout."""

    def __init__(self) -> None:
        self.console = Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def info(self, msg: str) -> None:
        self.console.print(msg)

    def dim(self, msg: str) -> None:
        self.console.print(f"[dim]{msg}[/dim]")

    def success(self, msg: str) -> None:
        self.console.print(f"[green]{msg}[/green]")

    def error(self, msg: str) -> None:
        self.err_console.print(f"[bold red]Error:[/bold red] {escape(msg)}")

    def hint(self, msg: str) -> None:
        self.err_console.print(f"[dim]Hint:[/dim] {msg}")

    def plain(self, text: str) -> None:
        """Print text verbatim, without markup or wrapping."""
        self.console.print(text, markup=False, soft_wrap=True, end="")


out = Output()

"""Console output with verbose and quiet modes."""

from rich.console import Console


class OutputFormatter:
    """
    Writes user-facing output.

    Verbosity belongs to the instance, so two runs in one process (tests, the
    combined command) never share it.
    """

    def __init__(self, verbose: bool = False, console: Console | None = None):
        self.verbose = verbose
        self.console = console or Console()
        self.err_console = Console(stderr=True) if console is None else console

    def output(self, message: str) -> None:
        """Always shown. Branch names are printed literally, without markup."""
        self.console.print(message, markup=False, highlight=False)

    def verbose_output(self, message: str) -> None:
        if self.verbose:
            self.console.print(message, markup=False, highlight=False, style="dim")

    def section(self, title: str) -> None:
        self.console.print(f"\n=== {title} ===", style="bold", markup=False)

    def summary(self, items: list[str]) -> None:
        self.console.print("\nSummary:", style="bold", markup=False)
        for item in items:
            self.output(f"  {item}")

    def warning(self, message: str) -> None:
        self.console.print(f"⚠️  {message}", style="yellow", markup=False, highlight=False)

    def success(self, message: str) -> None:
        self.console.print(f"✅ {message}", style="green", markup=False, highlight=False)

    def error(self, message: str) -> None:
        self.err_console.print(message, style="red", markup=False, highlight=False)

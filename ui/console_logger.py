"""Line-oriented request logger for headless runs."""

from rich.console import Console
from rich.markup import escape

from ui.log_utils import write_cli_log

console = Console()


class ConsoleLogger:
    """Print one line per request outcome instead of a live dashboard."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def log_forwarded(self, target: str, status: int) -> None:
        style = "green" if status < 400 else "yellow"
        self._print(f"[{style}]{status}[/{style}] {escape(target)}")
        write_cli_log("FORWARD", target, status=status)

    def log_rejected(self, category: str, raw: str | None, message: str) -> None:
        self._print(f"[yellow]REJECT[/yellow] {category}: {escape(message)}")
        write_cli_log("REJECT", message, category=category, url=raw)

    def log_error(self, target: str, status: int, message: str) -> None:
        self._print(f"[red]{status}[/red] {escape(target)}: {escape(message)}")
        write_cli_log("ERROR", message[:200], target=target, status=status)

    def log_decode_anomaly(self, raw: str, message: str) -> None:
        self._print(f"[dim]decode anomaly: {escape(message)}[/dim]")
        write_cli_log("DECODE", message, url=raw)

    def _print(self, line: str) -> None:
        if not self.quiet:
            console.print(line, highlight=False)

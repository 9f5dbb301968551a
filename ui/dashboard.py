"""Real-time CLI dashboard for proxy monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log

console = Console()


class FetchInfo:
    """Info about a single proxied fetch."""

    def __init__(self, target: str, status: int, timestamp: datetime):
        self.target = target[:80] + "..." if len(target) > 80 else target
        self.status = status
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing recent fetches and failures."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._fetches: list[FetchInfo] = []
        self._max_fetches = 10
        self._counts = {"forwarded": 0, "rejected": 0, "failed": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_forwarded(self, target: str, status: int) -> None:
        """Log a fetch that reached the target."""
        with self._lock:
            self._counts["forwarded"] += 1
            self._fetches.insert(0, FetchInfo(target, status, datetime.now()))
            self._fetches = self._fetches[: self._max_fetches]
            self._refresh()
            write_cli_log("FORWARD", target, status=status)

    def log_rejected(self, category: str, raw: str | None, message: str) -> None:
        """Log a request the resolver declined."""
        with self._lock:
            self._counts["rejected"] += 1
            self._push_error(f"{category}: {message}")
            self._refresh()
            write_cli_log("REJECT", message, category=category, url=raw)

    def log_error(self, target: str, status: int, message: str) -> None:
        """Log an upstream failure."""
        with self._lock:
            self._counts["failed"] += 1
            self._push_error(f"{status} {target}: {message}")
            self._refresh()
            write_cli_log("ERROR", message[:200], target=target, status=status)

    def log_decode_anomaly(self, raw: str, message: str) -> None:
        write_cli_log("DECODE", message, url=raw)

    def _push_error(self, line: str) -> None:
        truncated = line[:70] + "..." if len(line) > 70 else line
        self._errors.insert(0, truncated)
        self._errors = self._errors[:3]

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_fetches_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        allowlist = "allow-list" if self.config.allowlist.enabled else "permissive"

        stats = Text()
        stats.append("CDN CORS Proxy", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Forwarded: {self._counts['forwarded']}", style="green")
        stats.append("  |  ")
        stats.append(f"Rejected: {self._counts['rejected']}", style="yellow")
        stats.append("  |  ")
        stats.append(f"Failed: {self._counts['failed']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port} ({allowlist})", style="dim")

        return Panel(stats, style="cyan")

    def _build_fetches_panel(self) -> Panel:
        """Build recent fetches panel."""
        if self._fetches:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Status", width=6)
            table.add_column("Target", ratio=1)

            for fetch in self._fetches:
                style = "green" if fetch.status < 400 else "red"
                table.add_row(
                    fetch.timestamp.strftime("%H:%M:%S"),
                    Text(str(fetch.status), style=style),
                    fetch.target,
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent fetches[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"GET http://localhost:{self.config.proxy.port}/proxy?url=<encoded url>",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")

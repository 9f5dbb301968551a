"""CLI entry point for cdn-cors-proxy."""

import sys
from datetime import datetime

from rich.console import Console
from rich.markup import escape

from app import create_app
from core.allowlist import AllowList
from core.config import CONFIG_FILE, load_config
from core.exceptions import ConfigurationError, ResolutionError
from core.resolver import TargetResolver
from ui.console_logger import ConsoleLogger
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    try:
        config = load_config()
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    headless = False

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            return

        if arg == "--decode":
            if len(sys.argv) < 3:
                console.print("[red][ERROR][/red] --decode needs a URL argument")
                sys.exit(2)
            sys.exit(_print_decode(sys.argv[2], config))

        if arg in ("--help", "-h"):
            _print_help()
            return

        if arg == "--headless":
            headless = True

    # Clear previous logs and start logger
    clear_logs()
    logger = ConsoleLogger() if headless else Dashboard(config)

    import uvicorn

    app = create_app(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.fetch.keep_alive_timeout,
    )
    server = uvicorn.Server(uvicorn_config)

    if isinstance(logger, Dashboard):
        logger.start()
    else:
        console.print(f"Proxy server listening on port {config.proxy.port}")
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        if isinstance(logger, Dashboard):
            logger.stop()


def _print_decode(raw_url: str, config) -> int:
    """Run the resolver once and print the outcome."""
    resolver = TargetResolver(AllowList.from_settings(config.allowlist))
    decoded = resolver.decode(raw_url.strip())
    console.print(f"[bold]Original:[/bold] {escape(raw_url)}")
    console.print(f"[bold]Decoded:[/bold]  {escape(decoded.value)} [dim]({decoded.passes} passes)[/dim]")
    if decoded.anomaly:
        console.print(f"[yellow]Anomaly:[/yellow]  {escape(decoded.anomaly)}")
    try:
        target = resolver.resolve(raw_url)
    except ResolutionError as e:
        console.print(f"[red]Rejected:[/red] {e.category} - {escape(e.message)}")
        return 1
    console.print(f"[green]Target:[/green]   {escape(target.url)}")
    return 0


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]CDN CORS Proxy[/bold cyan]

Fetches ?url= targets with browser-like headers and adds permissive CORS headers.

[bold]Usage:[/bold]
    cdn-cors-proxy                 Start with live dashboard
    cdn-cors-proxy --headless      Start with line-by-line logging
    cdn-cors-proxy --decode URL    Resolve a URL without fetching it
    cdn-cors-proxy --config        Show config location
    cdn-cors-proxy --help          Show this help

[bold]Environment:[/bold]
    PORT                 Listen port (default 3000)
    ALLOWLIST_ENABLED    Set to 0 to forward to any host
"""
    console.print(help_text)


if __name__ == "__main__":
    main()

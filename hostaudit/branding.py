"""
Console output helpers shared by every hostaudit command.
"""

from rich.console import Console
from rich.panel import Panel

VERSION = "0.1.0"

console = Console()

_STATUS_STYLES = {
    "info": ("cyan", "•"),
    "success": ("green", "✓"),
    "warning": ("yellow", "⚠"),
    "error": ("red", "✗"),
}


def ha_print(message: str, status: str = "info") -> None:
    """Print a status-prefixed message."""
    style, prefix = _STATUS_STYLES.get(status, _STATUS_STYLES["info"])
    console.print(f"[{style}]{prefix}[/{style}] {message}")


def ha_header(title: str) -> None:
    console.print()
    console.rule(f"[bold cyan]{title}[/bold cyan]")


def show_banner() -> None:
    console.print(
        Panel(
            "[bold cyan]System Security Auditor[/bold cyan]\n"
            "[dim]Packages, file integrity, permissions, accounts and firewall[/dim]",
            title=f"[bold]hostaudit v{VERSION}[/bold]",
            border_style="cyan",
            expand=False,
        )
    )

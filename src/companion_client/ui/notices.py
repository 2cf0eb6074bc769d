"""Rich console notices for session recovery events."""

from typing import Optional
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from ..core.recovery import REFRESHED_NOTICE


class ConsoleNotifier:
    """Shows recovery notices on the terminal."""

    def __init__(self, console: Optional[Console] = None, interactive: bool = True):
        self.console = console or Console()
        self.interactive = interactive

    def notify_refreshed(self) -> None:
        """Show a dim one-line notice; nothing to acknowledge."""
        self.console.print(f"[dim green]✓ {REFRESHED_NOTICE}[/dim green]")

    def notify_fatal(self, message: str) -> None:
        """Show a blocking panel and wait for acknowledgment."""
        self.console.print()
        self.console.print(Panel(
            Text(message, style="bold"),
            title="Login failed",
            border_style="red"
        ))
        if self.interactive:
            Prompt.ask("[dim]Press Enter to continue[/dim]", default="", show_default=False)

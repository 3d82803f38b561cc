"""Debug tracing for the marketplace CLI."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

_stderr = Console(stderr=True, highlight=False)


class DebugConsole:
    """Debug output console, silent unless ``--debug`` was passed."""

    enabled = False

    @classmethod
    def debug(cls, msg: str) -> None:
        """Print debug message only when debug mode is enabled."""
        if not cls.enabled:
            return

        _stderr.print(f"[dim][DEBUG] {escape(msg)}[/dim]")

    @classmethod
    def debug_dict(cls, label: str, data: dict[str, object]) -> None:
        """Pretty print a dict in debug mode."""
        if not cls.enabled:
            return

        _stderr.print(f"[dim][DEBUG] {escape(label)}:[/dim]")
        for key, value in data.items():
            _stderr.print(f"[dim]        {escape(key)}: {escape(str(value))}[/dim]")

    @classmethod
    def debug_cmd(cls, cmd: list[str]) -> None:
        """Print command that will be executed."""
        if not cls.enabled:
            return

        _stderr.print("[dim][DEBUG] Executing command:[/dim]")
        _stderr.print(f"[dim]        {escape(' '.join(cmd))}[/dim]")

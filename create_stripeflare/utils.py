"""Shared utility functions for create-stripeflare.

Subprocess runner, duration formatting and the Rich console helpers every
pipeline step prints through.
"""

from __future__ import annotations

import asyncio
import os
import shlex
from pathlib import Path

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: float = 120,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run *cmd* (no shell) and wait for it, killing it after *timeout* seconds.

    With ``capture=False`` the child writes straight to the terminal, which is
    how npm, git and wrangler output reaches the user; the returned strings are
    then empty.  *env* is layered over the current environment.

    Returns:
        ``(returncode, stdout, stderr)``; a timeout yields ``-1`` and a
        message in the stderr slot.

    Raises:
        FileNotFoundError: If the program does not exist.
    """
    merged_env = {**os.environ, **env} if env else None
    pipe = asyncio.subprocess.PIPE if capture else None

    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=pipe,
        stderr=pipe,
        cwd=str(cwd) if cwd else None,
        env=merged_env,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"{shlex.join(cmd)} timed out after {timeout}s")

    stdout = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout, stderr)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """``3.7`` -> ``"3.7s"``, ``65.2`` -> ``"1m 5s"``, ``3661`` -> ``"1h 1m 1s"``."""
    if seconds < 60:
        return f"{max(seconds, 0.0):.1f}s"

    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    return f"{minutes}m {secs}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_step_header(title: str, color: str = "bright_cyan") -> None:
    """Print a full-width rule announcing a pipeline step."""
    console.print()
    console.print(Rule(f"[bold {color}] {title} [/bold {color}]", style=color))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print *data* as an Item/Value table under *title*."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"  [green]+[/green] {message}")


def print_error(message: str) -> None:
    """Print a red error message on stderr."""
    err_console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")

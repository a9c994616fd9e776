"""Rich-formatted logging setup."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Custom theme for logging and headless output
CUSTOM_THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "action": "bold magenta",
        "canceled": "yellow",
    }
)

# Global console instance
console = Console(theme=CUSTOM_THEME)


class ActionFormatter(logging.Formatter):
    """Prefixes records that carry an ``action`` attribute."""

    def format(self, record: logging.LogRecord) -> str:
        if hasattr(record, "action"):
            # Copy so other handlers see the original message
            record = logging.makeLogRecord(record.__dict__)
            record.msg = f"[{record.action}] {record.msg}"
        return super().format(record)


def setup_logging(
    log_dir: str | Path = "logs",
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
) -> Path | None:
    """
    Setup logging with Rich console handler and optional file handler.

    The terminal UI owns the screen, so it runs with ``log_to_console=False``.

    Args:
        log_dir: Directory to store log files
        level: Logging level
        log_to_file: Whether to also log to file
        log_to_console: Whether to log to the terminal

    Returns:
        Path of the log file, if one was opened
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    root_logger.handlers.clear()

    if log_to_console:
        rich_handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        rich_handler.setFormatter(ActionFormatter("%(message)s"))
        root_logger.addHandler(rich_handler)

    log_file = None
    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"verco_{timestamp}.log"

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            ActionFormatter(
                "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)

    if not root_logger.handlers:
        root_logger.addHandler(logging.NullHandler())

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    return log_file


def print_result(success: bool, text: str) -> None:
    """Print captured command output followed by a done/error marker."""
    console.print(text, markup=False, highlight=False)
    if success:
        console.print("done", style="success")
    else:
        console.print("error", style="error")


def print_banner(repository_directory: str) -> None:
    """Print application banner."""
    console.print(f"Verco @ {repository_directory}", style="bold magenta")

"""Main entry point for Verco."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from verco.config import Settings, clear_settings_cache, get_settings
from verco.core import ActionFuture, Application
from verco.integrations import VersionControlActions, detect_version_control
from verco.ui import VercoApp
from verco.utils import console, print_banner, print_result, setup_logging

logger = logging.getLogger(__name__)

# Actions that need no extra input, runnable with --run
HEADLESS_ACTIONS = {
    "status": lambda vcs: vcs.status(),
    "log": lambda vcs: vcs.log(),
    "conflicts": lambda vcs: vcs.conflicts(),
    "fetch": lambda vcs: vcs.fetch(),
    "pull": lambda vcs: vcs.pull(),
    "push": lambda vcs: vcs.push(),
    "branches": lambda vcs: vcs.list_branches(),
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="verco",
        description="Verco - run git/hg actions from single key presses",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-C", "--directory",
        type=str,
        default=".",
        help="Repository directory (default: current directory)",
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to config file (default: verco.yaml)",
    )

    parser.add_argument(
        "--run",
        type=str,
        choices=sorted(HEADLESS_ACTIONS),
        metavar="ACTION",
        help=f"Run a single action and print its output ({', '.join(sorted(HEADLESS_ACTIONS))})",
    )

    parser.add_argument(
        "--check",
        action="store_true",
        help="Print the version control executable's version",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def check_version_control(vcs: VersionControlActions) -> bool:
    """Check that the version control executable can be run."""
    console.print(f"\n[bold]{vcs.executable}:[/bold] ", end="")
    result = vcs.version()
    if result.success:
        console.print("[green]OK[/green]")
        console.print(result.text.strip(), markup=False, highlight=False)
    else:
        console.print("[red]NOT FOUND[/red]")
        console.print(result.text.strip(), markup=False, highlight=False)
    return result.success


def run_single_action(action_future: ActionFuture, settings: Settings) -> int:
    """Run one action through the worker without the TUI."""
    application = Application(poll_interval=settings.worker.poll_interval_seconds)
    try:
        application.run_action(action_future)
        while True:
            finished = application.poll_action_result()
            if finished is not None:
                break
            time.sleep(settings.ui.tick_ms / 1000)
    finally:
        application.stop()

    _, result = finished
    print_result(result.success, result.text)
    return 0 if result.success else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Load settings
    clear_settings_cache()
    settings = get_settings(args.config)

    headless = args.check or args.run is not None
    setup_logging(
        log_dir=settings.log_dir,
        level=logging.DEBUG if args.debug else logging.INFO,
        log_to_file=settings.log_to_file,
        log_to_console=headless,
    )

    directory = Path(args.directory).resolve()
    vcs = detect_version_control(directory, settings)
    if vcs is None:
        console.print("no repository found", style="error")
        return 1
    logger.debug(f"Using {vcs.executable} in {vcs.repository_directory}")

    # Check mode
    if args.check:
        print_banner(vcs.repository_directory)
        return 0 if check_version_control(vcs) else 1

    # Single action mode
    if args.run:
        return run_single_action(HEADLESS_ACTIONS[args.run](vcs), settings)

    # TUI mode
    app = VercoApp(vcs, settings)
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""stack-tail CLI: tail CloudFormation stack events or summarize its resources."""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from importlib.metadata import PackageNotFoundError, version
from typing import Any

from rich.console import Console
from rich.markup import escape

from .config import load_settings
from .engine.controller import RetryPolicy, TailController, TailMode
from .exceptions import (
    ConfigError,
    RetryBudgetExhausted,
    StackAuthError,
    StackNotFoundError,
    StackSourceError,
    TransientStackError,
    UsageError,
)
from .log_setup import setup_logger
from .source.cloudformation import CloudFormationSource
from .ui.render import EventRenderer, resolve_timezone

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_CONFIG = 3
EXIT_AUTH = 4
EXIT_NOT_FOUND = 5
EXIT_TRANSIENT = 6
EXIT_SOURCE = 7
EXIT_UNEXPECTED = 99


def _package_version() -> str:
    try:
        return version("stack-tail")
    except PackageNotFoundError:
        return "0+unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stack-tail",
        description="Tails AWS CloudFormation events for a given stack.",
    )
    parser.add_argument("stack_name", help="Name or id of the CloudFormation stack.")
    parser.add_argument(
        "-f",
        "--follow",
        action="store_true",
        help=(
            "Follow the state of progress in changes to a stack until stack "
            "completion or failure."
        ),
    )
    parser.add_argument(
        "-r",
        "--resources",
        action="store_true",
        help="Report summarized state for stack resources.",
    )
    parser.add_argument(
        "-t",
        "--timezone",
        default=None,
        help=(
            "Display timestamps adjusted for the provided IANA time zone "
            "(default: local system zone)."
        ),
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override STACK_TAIL_LOG_LEVEL for diagnostics written to stderr.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {_package_version()}",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments; argparse exits with status 2 on usage errors."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.follow and args.resources:
        parser.error("--follow applies to events only and cannot be combined with --resources")
    return args


def main(argv: list[str] | None = None) -> int:
    """Run one stack-tail invocation and return its exit code."""
    args = parse_args(argv)
    console = Console(soft_wrap=True)
    err_console = Console(stderr=True, soft_wrap=True)

    try:
        settings = load_settings()
    except ConfigError as exc:
        _report(err_console, exc)
        return EXIT_CONFIG

    try:
        logger = setup_logger(level=(args.log_level or settings.log_level).upper())
    except ValueError as exc:
        _report(err_console, f"invalid log level: {exc}")
        return EXIT_CONFIG
    logger.debug("Loaded settings", extra={"settings": settings.safe_summary()})

    try:
        zone = resolve_timezone(args.timezone or settings.timezone)
    except ConfigError as exc:
        _report(err_console, exc)
        return EXIT_CONFIG

    renderer = EventRenderer(console=console, zone=zone)
    mode = TailMode.RESOURCES if args.resources else TailMode.EVENTS
    retry_policy = RetryPolicy(
        max_retries=settings.max_retries,
        base_seconds=settings.retry_base_seconds,
        max_seconds=settings.retry_max_seconds,
        jitter_seconds=settings.retry_jitter_seconds,
    )

    previous_sigterm = _install_sigterm_handler()
    try:
        with CloudFormationSource(settings=settings, logger=logger) as source:
            controller = TailController(
                source=source,
                renderer=renderer,
                stack_name=args.stack_name,
                logger=logger,
                mode=mode,
                follow=args.follow,
                poll_interval_seconds=settings.poll_interval_seconds,
                retry_policy=retry_policy,
            )
            outcome = controller.run()
    except KeyboardInterrupt:
        err_console.print("Cancelled.", highlight=False)
        return EXIT_OK
    except UsageError as exc:
        _report(err_console, exc)
        return EXIT_USAGE
    except StackNotFoundError as exc:
        _report(err_console, exc)
        return EXIT_NOT_FOUND
    except StackAuthError as exc:
        _report(
            err_console,
            exc,
            hint="Check AWS_PROFILE, AWS_REGION and the AWS credential chain, and that the "
            "credentials allow cloudformation:DescribeStackEvents, "
            "DescribeStackResources and DescribeStacks.",
        )
        return EXIT_AUTH
    except (RetryBudgetExhausted, TransientStackError) as exc:
        _report(err_console, exc)
        return EXIT_TRANSIENT
    except StackSourceError as exc:
        _report(err_console, exc)
        return EXIT_SOURCE
    except Exception as exc:  # pragma: no cover - last-resort catch for the CLI
        logger.exception("Unexpected failure: %s", exc)
        _report(err_console, f"unexpected failure: {exc}")
        return EXIT_UNEXPECTED
    finally:
        _restore_sigterm_handler(previous_sigterm)

    if outcome.exit_code != EXIT_OK:
        status = controller.detector.last_status or "unknown"
        _report(err_console, f"stack {args.stack_name!r} ended in {status}")
    return outcome.exit_code


def _report(err_console: Console, message: object, *, hint: str | None = None) -> None:
    """Print one diagnostic line to stderr; provider text is never read as markup."""
    err_console.print(f"[red]error:[/red] {escape(str(message))}", highlight=False)
    if hint:
        err_console.print(escape(hint), highlight=False)


def _install_sigterm_handler() -> Any:
    # SIGTERM ends the run the same way Ctrl-C does. Handlers only exist on the main thread.
    if threading.current_thread() is not threading.main_thread():
        return None
    return signal.signal(signal.SIGTERM, signal.default_int_handler)


def _restore_sigterm_handler(previous: Any) -> None:
    if previous is not None:
        signal.signal(signal.SIGTERM, previous)


if __name__ == "__main__":
    sys.exit(main())

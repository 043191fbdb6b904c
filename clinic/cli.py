"""Command line tasks meant for cron and operators.

    python -m clinic.cli reminders [--hours-before N]
    python -m clinic.cli maintenance --enable [--duration N] [--message M]
    python -m clinic.cli maintenance --disable
    python -m clinic.cli maintenance --status
"""
import argparse
import fcntl
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlmodel import Session

from .core.config import settings
from .database import engine, create_db_and_tables
from . import maintenance

logger = logging.getLogger("clinic.cli")


class TaskAlreadyRunning(Exception):
    pass


@contextmanager
def exclusive_lock(path: str) -> Iterator[None]:
    """Non-blocking exclusive lock so overlapping cron runs skip instead of piling up."""
    with open(path, "a") as fh:
        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            raise TaskAlreadyRunning(path)
        try:
            yield
        finally:
            fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


def run_reminders(hours_before: int, lock_file: Optional[str] = None) -> int:
    from .routers.deps import build_reminder_service

    with exclusive_lock(lock_file or settings.SCHEDULER_LOCK_FILE):
        create_db_and_tables()
        with Session(engine) as session:
            return build_reminder_service(session).send_due_reminders(hours_before)


def cmd_reminders(args: argparse.Namespace) -> int:
    try:
        sent = run_reminders(args.hours_before)
    except TaskAlreadyRunning:
        logger.warning("Another task run holds the lock, skipping")
        return 0
    print(f"{sent} reminder(s) sent")
    return 0


def cmd_maintenance(args: argparse.Namespace) -> int:
    if args.enable:
        state = maintenance.enable(args.duration, args.message)
        until = state.end_time.strftime("%d/%m/%Y %H:%M") if state.end_time else "further notice"
        print(f"Maintenance mode enabled until {until}: {state.message}")
    elif args.disable:
        if maintenance.disable():
            print("Maintenance mode disabled")
        else:
            print("Maintenance mode was not enabled")
    else:
        state = maintenance.active_state()
        if state is None:
            print("Maintenance mode is disabled")
        else:
            print(f"Maintenance mode is enabled since {state.start_time:%d/%m/%Y %H:%M}")
            if state.end_time:
                print(f"Scheduled end: {state.end_time:%d/%m/%Y %H:%M}")
            print(f"Message: {state.message}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="clinic", description="Clinic scheduling maintenance tasks")
    sub = parser.add_subparsers(dest="command", required=True)

    reminders = sub.add_parser("reminders", help="Send reminders for upcoming appointments")
    reminders.add_argument("--hours-before", type=int, default=settings.REMINDER_HOURS_BEFORE)
    reminders.set_defaults(func=cmd_reminders)

    maint = sub.add_parser("maintenance", help="Manage maintenance mode")
    group = maint.add_mutually_exclusive_group(required=True)
    group.add_argument("--enable", action="store_true")
    group.add_argument("--disable", action="store_true")
    group.add_argument("--status", action="store_true")
    maint.add_argument("--duration", type=int, default=None, help="Duration in minutes")
    maint.add_argument("--message", default=None)
    maint.set_defaults(func=cmd_maintenance)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())

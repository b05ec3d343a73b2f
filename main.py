"""Command-line interface for the students dashboard."""

from __future__ import annotations
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, Sequence

from dashboard.client import StudentsAPIClient
from dashboard.config import DashboardSettings, load_settings
from dashboard.mutations import StudentMutations
from dashboard.orchestrator import RefreshOrchestrator
from dashboard.state import DashboardState, ViewSnapshot

logger = logging.getLogger("students.dashboard.main")

KNOWN_COMMANDS = {"serve", "show", "add", "delete"}


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Students dashboard utilities")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the dashboard YAML configuration (default: config/dashboard.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    serve_parser = subparsers.add_parser("serve", help="Start the web dashboard")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the dashboard")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the dashboard (default: 8000)",
    )

    subparsers.add_parser("show", help="Print the students, total and per-year counts")

    add_parser = subparsers.add_parser("add", help="Create a student")
    add_parser.add_argument("--first-name", required=True)
    add_parser.add_argument("--last-name", required=True)
    add_parser.add_argument("--birth-date", required=True, help="Birth date as YYYY-MM-DD")

    delete_parser = subparsers.add_parser("delete", help="Delete a student")
    delete_parser.add_argument("student_id", type=int)
    delete_parser.add_argument(
        "--yes",
        action="store_true",
        help="Skip the confirmation prompt",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]

    if not args_list:
        args_list = ["serve"]
    else:
        positional = [item for item in args_list if not item.startswith("-")]
        if any(flag in args_list for flag in ("-h", "--help")) and not positional:
            return parser.parse_args(args_list)
        if not any(item in KNOWN_COMMANDS for item in positional):
            split = _options_end(args_list)
            args_list = [*args_list[:split], "serve", *args_list[split:]]

    return parser.parse_args(args_list)


def _options_end(args_list: Sequence[str]) -> int:
    """Index after the leading global ``--config`` option, if present."""
    if len(args_list) >= 2 and args_list[0] == "--config":
        return 2
    if args_list and args_list[0].startswith("--config="):
        return 1
    return 0


def _load_settings(config: str | None) -> DashboardSettings:
    return load_settings(Path(config).expanduser() if config else None)


def _serve(settings: DashboardSettings, *, host: str, port: int) -> None:
    from dashboard import create_app
    import uvicorn

    logger.info("Starting students dashboard on http://%s:%s", host, port)
    uvicorn.run(create_app(settings), host=host, port=port, log_level="info")


def _print_snapshot(snapshot: ViewSnapshot) -> None:
    if snapshot.error_message:
        print(f"Warning: {snapshot.error_message}")
        print()

    print(f"Total students: {snapshot.total_count}")
    print()

    print("By year:")
    if not snapshot.year_aggregates:
        print("  No data")
    for row in snapshot.year_aggregates:
        total = row.total if row.total is not None else ""
        print(f"  {row.year:>6}  {total}")
    print()

    if not snapshot.students:
        print("No students yet.")
        return

    print(f"{len(snapshot.students)} student(s):")
    print(f"{'ID':>4}  {'First name':<20}  {'Last name':<20}  Birth date")
    print("-" * 64)
    for student in snapshot.students:
        print(
            f"{student.id:>4}  {student.first_name:<20}  {student.last_name:<20}  "
            f"{student.birth_date_display}"
        )


def _prompt_confirmation(prompt: str) -> bool:
    try:
        answer = input(f"{prompt} [y/N]: ")
    except EOFError:
        return False
    return answer.strip().lower() in {"y", "yes"}


async def _run_show(settings: DashboardSettings) -> ViewSnapshot:
    async with StudentsAPIClient(settings) as client:
        return await RefreshOrchestrator(client, DashboardState()).refresh()


async def _run_add(
    settings: DashboardSettings,
    *,
    first_name: str,
    last_name: str,
    birth_date: str,
) -> tuple[bool, ViewSnapshot]:
    async with StudentsAPIClient(settings) as client:
        state = DashboardState()
        mutations = StudentMutations(client, RefreshOrchestrator(client, state))
        state.update_draft(first_name=first_name, last_name=last_name, birth_date=birth_date)
        if not state.snapshot.draft.can_save:
            state.report_error("First name, last name and a YYYY-MM-DD birth date are required.")
            return False, state.snapshot
        created = await mutations.create()
        return created, state.snapshot


async def _run_delete(
    settings: DashboardSettings,
    student_id: int,
    confirm: Callable[[str], bool],
) -> tuple[bool, ViewSnapshot]:
    async with StudentsAPIClient(settings) as client:
        state = DashboardState()
        mutations = StudentMutations(client, RefreshOrchestrator(client, state))
        deleted = await mutations.delete(student_id, confirm)
        return deleted, state.snapshot


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    try:
        settings = _load_settings(args.config)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}")
        return 2

    if args.command == "serve":
        _serve(settings, host=args.host, port=args.port)
        return 0

    if args.command == "show":
        _print_snapshot(asyncio.run(_run_show(settings)))
        return 0

    if args.command == "add":
        created, snapshot = asyncio.run(
            _run_add(
                settings,
                first_name=args.first_name,
                last_name=args.last_name,
                birth_date=args.birth_date,
            )
        )
        if not created:
            print(snapshot.error_message or "Student was not created.")
            return 1
        print("Student created.")
        _print_snapshot(snapshot)
        return 0

    if args.command == "delete":
        confirm = (lambda _prompt: True) if args.yes else _prompt_confirmation
        deleted, snapshot = asyncio.run(_run_delete(settings, args.student_id, confirm))
        if snapshot.error_message and not deleted:
            print(snapshot.error_message)
            return 1
        if not deleted:
            print("Deletion cancelled.")
            return 0
        print(f"Deleted student #{args.student_id}.")
        return 0

    return 0


if __name__ == "__main__":
    sys.exit(main())

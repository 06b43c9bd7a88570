"""Livestock Ops command line interface.

Provides operational tools for:
- Schema creation
- Bootstrapping the first admin account
- CSV exports

Usage:
    livestock-ops init-db
    livestock-ops create-admin --email a@b.co --name Admin --password secret123
    livestock-ops export attendance --farm-id X --start 2024-01-01 --end 2024-01-31
    livestock-ops export payroll --farm-id X --period-id Y --output payroll.csv
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Callable
from uuid import UUID

from sqlalchemy import select

from livestock_ops.config import configure_logging
from livestock_ops.database import create_schema, dispose_db, get_session
from livestock_ops.errors import AppError
from livestock_ops.models import User
from livestock_ops.services.export_service import ExportResult, ExportService
from livestock_ops.services.user_service import UserService

logger = logging.getLogger(__name__)


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    return UUID(s)


class LivestockCli:
    """Livestock Ops Command Line Interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="livestock-ops",
            description="Livestock Ops operational tools",
        )
        parser.add_argument(
            "--log-level",
            type=str,
            help="Override LOG_LEVEL for this run",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser(
            "init-db",
            help="Create any missing database tables",
        )

        admin = subparsers.add_parser(
            "create-admin",
            help="Create an admin account",
        )
        admin.add_argument("--email", type=str, required=True, help="Login email")
        admin.add_argument("--name", type=str, required=True, help="Display name")
        admin.add_argument("--password", type=str, required=True, help="Initial password")

        export = subparsers.add_parser(
            "export",
            help="Export farm data as CSV",
        )
        export.add_argument(
            "kind",
            choices=["attendance", "payroll"],
            help="What to export",
        )
        export.add_argument(
            "--farm-id",
            type=parse_uuid,
            required=True,
            help="Farm to export",
        )
        export.add_argument(
            "--start",
            type=parse_date,
            help="First day of the attendance range (YYYY-MM-DD)",
        )
        export.add_argument(
            "--end",
            type=parse_date,
            help="Last day of the attendance range (YYYY-MM-DD)",
        )
        export.add_argument(
            "--period-id",
            type=parse_uuid,
            help="Payroll period to export",
        )
        export.add_argument(
            "--output",
            type=Path,
            help="Write to this file instead of stdout",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)
        configure_logging(parsed.log_level.upper() if parsed.log_level else None)

        if not parsed.command:
            self.parser.print_help()
            return 1

        handlers: dict[str, Callable[[argparse.Namespace], int]] = {
            "init-db": self._cmd_init_db,
            "create-admin": self._cmd_create_admin,
            "export": self._cmd_export,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return handler(parsed)
        except AppError as exc:
            print(f"Error: {exc.message}", file=sys.stderr)
            return 1

    def _cmd_init_db(self, args: argparse.Namespace) -> int:
        """Create database tables."""

        async def init() -> None:
            try:
                await create_schema()
            finally:
                await dispose_db()

        asyncio.run(init())
        print("Database schema is up to date.")
        return 0

    def _cmd_create_admin(self, args: argparse.Namespace) -> int:
        """Create an admin user."""

        async def create() -> User:
            try:
                async with get_session() as session:
                    return await UserService(session).bootstrap_admin(
                        args.email, args.name, args.password
                    )
            finally:
                await dispose_db()

        user = asyncio.run(create())
        print(f"Created admin {user.email} ({user.user_id})")
        return 0

    def _cmd_export(self, args: argparse.Namespace) -> int:
        """Export attendance or payroll as CSV."""
        if args.kind == "attendance" and (args.start is None or args.end is None):
            print("attendance export needs --start and --end", file=sys.stderr)
            return 1
        if args.kind == "payroll" and args.period_id is None:
            print("payroll export needs --period-id", file=sys.stderr)
            return 1

        async def export() -> ExportResult:
            try:
                async with get_session() as session:
                    actor = await session.scalar(
                        select(User).where(User.role == "admin").order_by(User.created_at)
                    )
                    if actor is None:
                        raise AppError("USER_NOT_FOUND", "Create an admin account first")
                    service = ExportService(session)
                    if args.kind == "attendance":
                        return await service.export_attendance_csv(
                            actor, args.farm_id, args.start, args.end
                        )
                    return await service.export_payroll_csv(actor, args.period_id)
            finally:
                await dispose_db()

        result = asyncio.run(export())
        if args.output is None:
            sys.stdout.write(result.content)
            return 0

        args.output.write_text(result.content, encoding="utf-8")
        logger.info("Wrote %s export to %s", args.kind, args.output)
        print(f"Exported {args.kind} to {args.output}")
        return 0


def main() -> int:
    """CLI entry point."""
    cli = LivestockCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())

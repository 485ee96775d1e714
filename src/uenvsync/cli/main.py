#!/usr/bin/env python3
"""
UENVSYNC CLI - Line-by-Line uEnv.txt Update
-------------------------------------------
Primary interface for pushing a local uEnv.txt to a BeagleBone:
  update   backup, preview, confirm and apply line updates (uname_r untouched)
  preview  show what would change, never writes
  backup   create a timestamped backup on the device
  restore  copy the most recent backup back over uEnv.txt
  show     display the remote file and its backups

Author: uenvsync maintainers
Date: 2026-10-19
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from uenvsync.cli.formatter import SyncFormatter, console
from uenvsync.core.engine import SyncEngine, SyncReport
from uenvsync.core.errors import UEnvSyncError
from uenvsync.core.settings import Settings, load_settings
from uenvsync.report.exporter import ChangeLogExporter

VERSION = "1.0.0"

logger = logging.getLogger("uenvsync.cli")

EngineFactory = Callable[[Settings], SyncEngine]


def configure_logging(verbosity: int, out: Console = console):
    """WARNING by default, -v for INFO, -vv for DEBUG."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=out, show_path=False)],
        force=True,
    )


class UEnvSyncCLI:
    """
    CLI wrapper that translates user commands into SyncEngine actions.
    Provides the confirmation gate, ChangeLog tables and optional diffs.
    """

    def __init__(self, engine_factory: EngineFactory = SyncEngine, out: Console = None):
        self.console = out or console
        self.formatter = SyncFormatter(self.console)
        self.engine_factory = engine_factory
        self.parser = argparse.ArgumentParser(
            prog="uenvsync",
            description="uenvsync - Line-by-line uEnv.txt updates for BeagleBone devices",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=(
                "Environment variables:\n"
                "  REMOTE_HOST    Target device IP (default: 192.168.0.98)\n"
                "  REMOTE_USER    SSH user (default: root)\n"
            ),
        )
        self._setup_args()

    def _setup_args(self):
        """Configures the global flags and subcommands."""
        self.parser.add_argument("--version", action="version", version=f"uenvsync v{VERSION}")
        self.parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")
        self.parser.add_argument("--config", help="Settings file (default: ./uenvsync.yaml)")
        self.parser.add_argument("--host", help="Override REMOTE_HOST")
        self.parser.add_argument("--user", help="Override REMOTE_USER")
        self.parser.add_argument("--local", dest="local_path", help="Local uEnv.txt (default: ./uEnv.txt)")
        self.parser.add_argument("--remote", dest="remote_path", help="Remote uEnv.txt (default: /boot/uEnv.txt)")

        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        update_parser = subparsers.add_parser("update", help="Update lines from local to remote")
        update_parser.add_argument("-y", "--yes", action="store_true", help="Apply without asking")
        update_parser.add_argument("--diff", action="store_true", help="Show a unified diff of the remote file")
        update_parser.add_argument("--report", help="Write the change log to a YAML file")

        preview_parser = subparsers.add_parser("preview", help="Show what lines would be updated")
        preview_parser.add_argument("--diff", action="store_true", help="Show a unified diff of the remote file")
        preview_parser.add_argument("--report", help="Write the change log to a YAML file")

        subparsers.add_parser("backup", help="Create a backup only")
        subparsers.add_parser("restore", help="Restore from the most recent backup")
        subparsers.add_parser("show", help="Show the current remote uEnv.txt and backups")

    def print_header(self, subtitle: str):
        self.console.print(Panel.fit(
            f"[bold cyan]uenvsync v{VERSION}[/bold cyan]",
            title=f"[bold white]{escape(subtitle)}[/bold white]",
            border_style="cyan"
        ))

    def print_help(self):
        self.console.print(self.parser.format_help(), markup=False, highlight=False)

    def _confirm_update(self) -> bool:
        try:
            choice = self.console.input("\n[bold yellow]Apply these updates? (y/N): [/bold yellow]")
        except EOFError:
            # Closed stdin (pipe, cron) counts as "no"
            self.console.print()
            return False
        return choice.strip().lower() in ("y", "yes")

    def _render_report(self, report: SyncReport, settings: Settings, args: argparse.Namespace):
        self.formatter.show_changelog(report.merge)
        if args.diff:
            self.formatter.display_diff(report.original_text, report.merge.result.render(), settings.remote_path)
        if args.report:
            target = ChangeLogExporter().write(args.report, report.merge, settings.local_path, settings.remote_path)
            self.console.print(f"[dim]Change log written to {escape(str(target))}[/dim]")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def cmd_update(self, engine: SyncEngine, args: argparse.Namespace) -> int:
        def confirm(pending: SyncReport) -> bool:
            # Same merge that will be written; shown before the prompt
            self._render_report(pending, engine.settings, args)
            return args.yes or self._confirm_update()

        report = engine.update(confirm)
        self.console.print(f"[dim]Backup created: {escape(report.backup_path)}[/dim]")

        if not report.merge.has_changes:
            self._render_report(report, engine.settings, args)
            return 0

        if report.cancelled:
            self.console.print("[bold yellow]Update cancelled by user[/bold yellow]")
            return 0
        if report.written:
            target = escape(engine.settings.target)
            self.console.print("[bold green]Lines updated successfully![/bold green]")
            self.console.print(f"[yellow]Reboot device to apply changes: ssh {target} reboot[/yellow]")
        return 0

    def cmd_preview(self, engine: SyncEngine, args: argparse.Namespace) -> int:
        report = engine.preview()
        self._render_report(report, engine.settings, args)
        return 0

    def cmd_backup(self, engine: SyncEngine, args: argparse.Namespace) -> int:
        backup_path = engine.backup()
        self.console.print(f"[bold green]Backup completed:[/bold green] {escape(backup_path)}")
        return 0

    def cmd_restore(self, engine: SyncEngine, args: argparse.Namespace) -> int:
        used = engine.restore()
        self.console.print(f"[bold green]Backup restored successfully[/bold green] from {escape(used)}")
        self.formatter.show_snapshot(engine.show())
        return 0

    def cmd_show(self, engine: SyncEngine, args: argparse.Namespace) -> int:
        self.formatter.show_snapshot(engine.show())
        return 0

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point. Returns the process exit code."""
        argv = sys.argv[1:] if argv is None else argv
        if not argv:
            self.print_header("uEnv.txt Line Sync")
            self.print_help()
            return 0

        args = self.parser.parse_args(argv)
        if not args.command:
            self.print_help()
            return 0

        configure_logging(args.verbose, self.console)

        handlers = {
            "update": self.cmd_update,
            "preview": self.cmd_preview,
            "backup": self.cmd_backup,
            "restore": self.cmd_restore,
            "show": self.cmd_show,
        }

        try:
            settings = load_settings(
                args.config,
                remote_host=args.host,
                remote_user=args.user,
                local_path=args.local_path,
                remote_path=args.remote_path,
            )
            self.print_header(f"{args.command} {settings.target}:{settings.remote_path}")
            engine = self.engine_factory(settings)
            return handlers[args.command](engine, args)
        except UEnvSyncError as e:
            logger.debug("Command failed", exc_info=True)
            self.console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
            return 1


def main():
    """Application entry point with interrupt handling."""
    try:
        code = UEnvSyncCLI().run()
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(130)
    sys.exit(code)


if __name__ == "__main__":
    main()

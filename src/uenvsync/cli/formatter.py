# src/uenvsync/cli/formatter.py
import difflib
from typing import List

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from uenvsync.core.engine import RemoteSnapshot
from uenvsync.core.models import ChangeKind, MergeResult

# Shared console; the CLI swaps it for a recording one in tests
console = Console()

ACTION_STYLES = {
    ChangeKind.SKIP: ("⏭️  SKIP", "dim"),
    ChangeKind.UPDATE: ("🔄 UPDATE", "bold yellow"),
    ChangeKind.ADD: ("➕ ADD", "bold green"),
    ChangeKind.SAME: ("✅ SAME", "green"),
}


def printable(text: str) -> str:
    """Swaps undecodable bytes (kept as surrogates) for U+FFFD."""
    return text.encode('utf-8', errors='surrogateescape').decode('utf-8', errors='replace')


def safe(text: str) -> str:
    """File content as rich markup that renders literally."""
    return escape(printable(text))


class SyncFormatter:
    """
    Renders ChangeLogs, diffs and remote snapshots for the terminal.
    """

    def __init__(self, out: Console = None):
        self.console = out or console

    def show_changelog(self, result: MergeResult, title: str = "Changes that would be made"):
        """One row per local line decision, updates show FROM/TO."""
        table = Table(title=title, show_lines=False, header_style="bold magenta")
        table.add_column("Action", no_wrap=True)
        table.add_column("Key", style="cyan")
        table.add_column("Line")

        for entry in result.changelog:
            label, style = ACTION_STYLES[entry.kind]
            if entry.kind is ChangeKind.UPDATE:
                detail = f"FROM: {safe(entry.old)}\nTO:   {safe(entry.new)}"
            elif entry.kind is ChangeKind.SKIP:
                detail = f"{safe(entry.new)} (preserving remote kernel version)"
            else:
                detail = safe(entry.new)
            table.add_row(f"[{style}]{label}[/{style}]", escape(entry.key or ""), detail)

        self.console.print(table)
        self.show_summary(result)

    def show_summary(self, result: MergeResult):
        if not result.has_changes:
            self.console.print("[bold green]✅ No changes needed - files are in sync![/bold green]")
            return
        self.console.print(
            f"[bold yellow]⚠️  {len(result.changes)} change(s) found[/bold yellow] "
            f"({result.count(ChangeKind.UPDATE)} update, {result.count(ChangeKind.ADD)} add)"
        )

    def display_diff(self, original_text: str, merged_text: str, file_name: str):
        """Colorized unified diff of the remote file before and after the merge."""
        diff_list: List[str] = list(difflib.unified_diff(
            printable(original_text).split("\n"),
            printable(merged_text).split("\n"),
            fromfile=f"remote: {file_name}",
            tofile="merged",
            lineterm=""
        ))

        if not diff_list:
            self.console.print(f"[dim]ℹ No changes for {escape(file_name)}.[/dim]")
            return

        syntax = Syntax("\n".join(diff_list), "diff", theme="monokai", line_numbers=False)
        self.console.print(Panel(syntax, title=f"Proposed update: {escape(file_name)}", border_style="green"))

    def show_snapshot(self, snapshot: RemoteSnapshot):
        listing = snapshot.listing or snapshot.path
        self.console.print(Panel(safe(listing), title="File info", border_style="cyan"))
        self.console.print(Syntax(printable(snapshot.content).rstrip("\n") or " ", "ini", theme="ansi_dark", line_numbers=True))

        if snapshot.backups:
            table = Table(title="Available backups", header_style="bold magenta")
            table.add_column("#", justify="right")
            table.add_column("Backup", style="cyan")
            for index, backup in enumerate(snapshot.backups, start=1):
                table.add_row(str(index), safe(backup))
            self.console.print(table)
        else:
            self.console.print("[dim]No backups found[/dim]")

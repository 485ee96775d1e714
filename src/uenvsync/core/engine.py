#!/usr/bin/env python3
"""
UENVSYNC ENGINE - Session Orchestrator
--------------------------------------
The SyncEngine drives one uEnv.txt session against a device: pre-flight
checks, backup, merge, confirmation and the final atomic write. It also
exposes the maintenance commands (backup, restore, show).

Ordering guarantees:
  * nothing on the device is mutated before a backup exists
  * the merge is computed once and the same result is previewed and written
  * a declined confirmation leaves the device untouched (apart from the backup)

Author: uenvsync maintainers
Date: 2026-10-19
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from uenvsync.core.errors import NotFoundError
from uenvsync.core.models import ConfigFile, MergeResult
from uenvsync.core.settings import Settings
from uenvsync.merging.lexer import UEnvLexer
from uenvsync.merging.merger import PROTECTED_KEY, ConfigLineMerger
from uenvsync.transport.local import LocalFileStore
from uenvsync.transport.remote import RemoteFileStore

logger = logging.getLogger("uenvsync.engine")


@dataclass
class SyncReport:
    """Outcome of a `preview` or `update` run."""
    merge: MergeResult
    original_text: str = ""
    backup_path: Optional[str] = None
    written: bool = False
    cancelled: bool = False


# Receives the computed report before any write, returns True to apply it.
ConfirmCallback = Callable[[SyncReport], bool]


@dataclass
class RemoteSnapshot:
    """Current state of the remote file, as shown by `show`."""
    path: str
    listing: str
    content: str
    backups: List[str] = field(default_factory=list)


class SyncEngine:
    """
    Principal orchestrator for uEnv.txt synchronisation.
    Stores are injectable so the whole flow can run against fakes.
    """

    def __init__(self, settings: Settings,
                 remote: Optional[RemoteFileStore] = None,
                 local: Optional[LocalFileStore] = None):
        self.settings = settings
        self.remote = remote or RemoteFileStore(settings)
        self.local = local or LocalFileStore()
        self.lexer = UEnvLexer()
        self.merger = ConfigLineMerger()

    # ------------------------------------------------------------------
    # Pre-flight
    # ------------------------------------------------------------------
    def check(self) -> None:
        """Local file present, device reachable, remote file present."""
        if not self.local.exists(self.settings.local_path):
            raise NotFoundError(f"Local uEnv.txt not found: {self.settings.local_path}")

        self.remote.check_connection()

        if not self.remote.exists(self.settings.remote_path):
            raise NotFoundError(f"Remote uEnv.txt not found: {self.settings.remote_path}")

        logger.info("Files and connectivity OK")

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------
    def _load_pair(self) -> Tuple[ConfigFile, str, bool]:
        """Returns (local file, remote text, remote had a BOM)."""
        local = self.lexer.parse_bytes(self.local.read(self.settings.local_path))
        remote_text, remote_bom = self.lexer.decode(self.remote.read(self.settings.remote_path))
        return local, remote_text, remote_bom

    def _merge(self, local: ConfigFile, remote_text: str) -> MergeResult:
        remote = self.lexer.parse(remote_text)
        kernel = remote.find(PROTECTED_KEY)
        if kernel is not None:
            logger.info(f"Preserving remote kernel selector: {kernel.raw!r}")
        return self.merger.merge(local, remote)

    def preview(self) -> SyncReport:
        """Computes the merge without writing anything."""
        self.check()
        local, remote_text, _ = self._load_pair()
        result = self._merge(local, remote_text)
        return SyncReport(merge=result, original_text=remote_text)

    def update(self, confirm: ConfirmCallback) -> SyncReport:
        """
        Full update cycle: check, backup, merge, confirm, write.
        Transport failures propagate; a failed backup aborts before any write.
        """
        self.check()
        backup_path = self.remote.backup(self.settings.remote_path)

        local, remote_text, remote_bom = self._load_pair()
        result = self._merge(local, remote_text)
        report = SyncReport(merge=result, original_text=remote_text, backup_path=backup_path)

        if not result.has_changes:
            logger.info("No changes needed - files are in sync")
            return report

        if not confirm(report):
            logger.warning("Update cancelled by user")
            report.cancelled = True
            return report

        self.remote.write(self.settings.remote_path, self.lexer.encode(result.result, bom=remote_bom))
        report.written = True
        logger.info(f"Applied {len(result.changes)} change(s) to {self.settings.remote_path}")
        return report

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------
    def backup(self) -> str:
        self.check()
        return self.remote.backup(self.settings.remote_path)

    def restore(self) -> str:
        return self.remote.restore(self.settings.remote_path)

    def show(self) -> RemoteSnapshot:
        path = self.settings.remote_path
        return RemoteSnapshot(
            path=path,
            listing=self.remote.describe(path),
            content=self.lexer.decode(self.remote.read(path))[0],
            backups=self.remote.list_backups(path),
        )

#!/usr/bin/env python3
"""
UENVSYNC REMOTE STORE - SSH File Access
---------------------------------------
Reads, writes and backs up files on the target device by shelling out to
`ssh`. Writes are atomic: content lands in a sibling temp file which is then
moved over the target, so an interrupted transfer never leaves a half
written uEnv.txt behind.

Author: uenvsync maintainers
Date: 2026-10-19
"""

import logging
import shlex
import subprocess
import time
from typing import Callable, List, Optional

from uenvsync.core.errors import NotFoundError, TransportError
from uenvsync.core.settings import Settings

logger = logging.getLogger("uenvsync.transport")

# Signature of subprocess.run as used here; swapped out in tests.
CommandRunner = Callable[..., subprocess.CompletedProcess]

BACKUP_SUFFIX = ".backup."
TEMP_SUFFIX = ".uenvsync.tmp"
SSH_CONNECTION_FAILURE = 255


class RemoteFileStore:
    """
    File operations on a remote host over an authenticated ssh session.
    Every failure surfaces as TransportError; nothing is retried here.
    """

    def __init__(self, settings: Settings, runner: Optional[CommandRunner] = None):
        self.settings = settings
        self.runner = runner or subprocess.run

    # ------------------------------------------------------------------
    # Low level
    # ------------------------------------------------------------------
    def _ssh_command(self, remote_script: str, batch: bool = False) -> List[str]:
        command = ["ssh", "-o", f"ConnectTimeout={self.settings.connect_timeout}"]
        if batch:
            command += ["-o", "BatchMode=yes"]
        command += [self.settings.target, remote_script]
        return command

    def _run(self, remote_script: str, stdin: Optional[bytes] = None,
             batch: bool = False, check: bool = True) -> subprocess.CompletedProcess:
        command = self._ssh_command(remote_script, batch=batch)
        logger.debug(f"Running: {shlex.join(command)}")
        try:
            completed = self.runner(command, input=stdin, capture_output=True, check=False)
        except OSError as e:
            raise TransportError(f"Unable to launch ssh: {e}")

        if check and completed.returncode != 0:
            raise self._failure(completed)
        return completed

    def _failure(self, completed: subprocess.CompletedProcess) -> TransportError:
        stderr = _decode(completed.stderr).strip()
        if completed.returncode == SSH_CONNECTION_FAILURE:
            message = f"Cannot connect to {self.settings.target} via SSH"
        else:
            message = f"Remote command failed on {self.settings.target} (exit {completed.returncode})"
        if stderr:
            message = f"{message}: {stderr}"
        return TransportError(message, returncode=completed.returncode, stderr=stderr)

    # ------------------------------------------------------------------
    # File operations
    # ------------------------------------------------------------------
    def check_connection(self) -> None:
        """Non-interactive reachability check (no password prompts)."""
        completed = self._run("exit", batch=True, check=False)
        if completed.returncode != 0:
            raise TransportError(
                f"Cannot connect to {self.settings.target} via SSH",
                returncode=completed.returncode,
                stderr=_decode(completed.stderr).strip(),
            )

    def exists(self, path: str) -> bool:
        completed = self._run(f"test -f {shlex.quote(path)}", check=False)
        if completed.returncode == SSH_CONNECTION_FAILURE:
            raise self._failure(completed)
        return completed.returncode == 0

    def read(self, path: str) -> bytes:
        if not self.exists(path):
            raise NotFoundError(f"Remote file not found: {path}")
        return self._run(f"cat -- {shlex.quote(path)}").stdout or b""

    def write(self, path: str, data: bytes) -> None:
        """Replaces `path` atomically with `data`."""
        target = shlex.quote(path)
        temp = shlex.quote(path + TEMP_SUFFIX)
        script = f"cat > {temp} && mv -f {temp} {target} || {{ rm -f {temp}; exit 1; }}"
        self._run(script, stdin=data)
        logger.info(f"Wrote {len(data)} bytes to {self.settings.target}:{path}")

    def backup(self, path: str) -> str:
        """
        Copies `path` to a timestamped sibling and prunes old backups so only
        the newest `backup_keep` remain. Returns the backup path.

        Two backups within the same second get `-1`, `-2`, ... suffixes. The
        copy is not `-p` so its mtime orders it for pruning.
        """
        stamped = f"{path}{BACKUP_SUFFIX}{time.strftime('%Y%m%d_%H%M%S')}"
        pattern = f"{shlex.quote(path + BACKUP_SUFFIX)}*"
        keep_from = self.settings.backup_keep + 1
        script = (
            f"b={shlex.quote(stamped)}; n=1; "
            f"while [ -e \"$b\" ]; do b={shlex.quote(stamped + '-')}\"$n\"; n=$((n+1)); done; "
            f"cp -- {shlex.quote(path)} \"$b\" && "
            f"{{ ls -1t {pattern} 2>/dev/null | tail -n +{keep_from} | xargs -r rm -f; "
            f"printf '%s\\n' \"$b\"; }}"
        )
        completed = self._run(script)
        backup_path = _decode(completed.stdout).strip() or stamped
        logger.info(f"Backup created: {backup_path}")
        return backup_path

    def list_backups(self, path: str) -> List[str]:
        """Backups of `path`, newest first."""
        pattern = f"{shlex.quote(path + BACKUP_SUFFIX)}*"
        completed = self._run(f"ls -1t {pattern} 2>/dev/null || true")
        return [line for line in _decode(completed.stdout).splitlines() if line.strip()]

    def restore(self, path: str) -> str:
        """Copies the most recent backup over `path`; returns the backup used."""
        backups = self.list_backups(path)
        if not backups:
            raise NotFoundError(f"No backup files found for {path}")
        latest = backups[0]
        self._run(f"cp -p -- {shlex.quote(latest)} {shlex.quote(path)}")
        logger.info(f"Restored {path} from {latest}")
        return latest

    def describe(self, path: str) -> str:
        """`ls -la` style listing of `path`."""
        return _decode(self._run(f"ls -la -- {shlex.quote(path)}").stdout).strip()


def _decode(data) -> str:
    if not data:
        return ""
    if isinstance(data, str):
        return data
    return data.decode('utf-8', errors='replace')

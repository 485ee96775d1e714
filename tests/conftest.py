import subprocess
from typing import Dict, List, Optional

import pytest

from uenvsync.core.errors import NotFoundError, TransportError
from uenvsync.core.settings import Settings


class FakeRunner:
    """
    Stands in for subprocess.run: records every ssh invocation and answers
    from a queue of canned CompletedProcess results.
    """

    def __init__(self):
        self.calls: List[dict] = []
        self.responses: List[subprocess.CompletedProcess] = []

    def queue(self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b""):
        self.responses.append(subprocess.CompletedProcess([], returncode, stdout, stderr))

    def __call__(self, command, input=None, capture_output=False, check=False):
        self.calls.append({"command": command, "input": input})
        if self.responses:
            return self.responses.pop(0)
        return subprocess.CompletedProcess(command, 0, b"", b"")

    @property
    def scripts(self) -> List[str]:
        return [call["command"][-1] for call in self.calls]


class MemoryRemoteStore:
    """In-memory remote store with the RemoteFileStore surface."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None, reachable: bool = True):
        self.files = dict(files or {})
        self.reachable = reachable
        self.writes: List[str] = []
        self.backups: List[str] = []

    def check_connection(self):
        if not self.reachable:
            raise TransportError("Cannot connect to root@device via SSH", returncode=255)

    def exists(self, path):
        return path in self.files

    def read(self, path):
        if path not in self.files:
            raise NotFoundError(f"Remote file not found: {path}")
        return self.files[path]

    def write(self, path, data):
        self.files[path] = data
        self.writes.append(path)

    def backup(self, path):
        backup_path = f"{path}.backup.{len(self.backups):04d}"
        self.files[backup_path] = self.files[path]
        self.backups.insert(0, backup_path)
        return backup_path

    def list_backups(self, path):
        return list(self.backups)

    def restore(self, path):
        if not self.backups:
            raise NotFoundError(f"No backup files found for {path}")
        self.files[path] = self.files[self.backups[0]]
        return self.backups[0]

    def describe(self, path):
        return f"-rw-r--r-- 1 root root {len(self.files.get(path, b''))} {path}"


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        remote_host="device",
        remote_user="root",
        local_path=str(tmp_path / "uEnv.txt"),
        remote_path="/boot/uEnv.txt",
    )


@pytest.fixture
def make_store():
    return MemoryRemoteStore

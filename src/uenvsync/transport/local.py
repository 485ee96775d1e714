"""Local filesystem access for the desired-state uEnv.txt."""

from pathlib import Path

from uenvsync.core.errors import NotFoundError


class LocalFileStore:
    """Read-only access to files on this machine."""

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def read(self, path: str) -> bytes:
        target = Path(path)
        if not target.is_file():
            raise NotFoundError(f"Local file not found: {path}")
        try:
            return target.read_bytes()
        except OSError as e:
            raise NotFoundError(f"Local file unreadable: {path} ({e})")

#!/usr/bin/env python3
"""
UENVSYNC CORE MODELS
--------------------
Defines the fundamental data structures used across the uenvsync engine.
A configuration file is an ordered, immutable run of ConfigLines; a merge
produces a new file plus a ChangeLog describing every decision taken.

Author: uenvsync maintainers
Date: 2026-10-19
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Tuple


class LineKind(str, Enum):
    """Classification of a single configuration line."""
    ASSIGNMENT = "assignment"
    COMMENT = "comment"
    BLANK = "blank"
    OTHER = "other"


@dataclass(frozen=True)
class ConfigLine:
    """
    The atomic unit of a uEnv.txt file.

    A ConfigLine always carries the original text verbatim in `raw`, so
    rendering a parsed file gives back exactly what was read.
    """
    raw: str                       # The original unmutated line
    kind: LineKind                 # Assignment / Comment / Blank / Other
    key: Optional[str] = None      # Variable name (assignments only, '#' stripped)
    commented: bool = False        # True for '#key=value'
    value: Optional[str] = None    # Everything after the first '=', verbatim

    @property
    def is_assignment(self) -> bool:
        return self.kind is LineKind.ASSIGNMENT


@dataclass(frozen=True)
class ConfigFile:
    """An ordered sequence of ConfigLines representing one file's contents."""
    lines: Tuple[ConfigLine, ...] = ()

    def __iter__(self) -> Iterator[ConfigLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def raw_lines(self) -> Tuple[str, ...]:
        return tuple(line.raw for line in self.lines)

    def find(self, key: str) -> Optional[ConfigLine]:
        """Returns the first assignment for `key`, commented or not."""
        for line in self.lines:
            if line.is_assignment and line.key == key:
                return line
        return None

    def render(self) -> str:
        """Joins the raw lines back into file text with a trailing newline."""
        if not self.lines:
            return ""
        return "\n".join(self.raw_lines) + "\n"


class ChangeKind(str, Enum):
    """Decision recorded for one local line during a merge."""
    SKIP = "skip"
    UPDATE = "update"
    ADD = "add"
    SAME = "same"


@dataclass(frozen=True)
class ChangeEntry:
    """
    One ChangeLog record.

    `old` is the remote text that was matched (updates and same-key matches),
    `new` is the local text that drove the decision.
    """
    kind: ChangeKind
    new: str
    key: Optional[str] = None
    old: Optional[str] = None


@dataclass(frozen=True)
class MergeResult:
    """The merged remote file together with the ChangeLog that produced it."""
    result: ConfigFile
    changelog: Tuple[ChangeEntry, ...] = field(default_factory=tuple)

    @property
    def changes(self) -> Tuple[ChangeEntry, ...]:
        """Only the entries that mutate the remote file."""
        return tuple(
            entry for entry in self.changelog
            if entry.kind in (ChangeKind.UPDATE, ChangeKind.ADD)
        )

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    def count(self, kind: ChangeKind) -> int:
        return sum(1 for entry in self.changelog if entry.kind is kind)

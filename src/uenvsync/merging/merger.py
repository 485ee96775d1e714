#!/usr/bin/env python3
"""
UENVSYNC MERGER - Line-by-Line Reconciler
-----------------------------------------
Merges a local "desired state" uEnv.txt into the copy found on the device.

The merge is a pure function of (local, remote): it never performs I/O and
never mutates its inputs. Preview and update both call `merge`, so what the
user is shown is exactly what gets written.

Rules, applied to each local line in order:
  * blank lines are ignored
  * `uname_r` is never written, added or altered (kernel selector)
  * assignments replace the same-key remote line in place, or are appended
  * comments and free text are appended unless already present verbatim

Author: uenvsync maintainers
Date: 2026-10-19
"""

import logging
from collections import defaultdict
from typing import Dict, List

from uenvsync.core.models import (
    ChangeEntry,
    ChangeKind,
    ConfigFile,
    ConfigLine,
    LineKind,
    MergeResult,
)

logger = logging.getLogger("uenvsync.merger")

# Active kernel version selector; authoritative on the device.
PROTECTED_KEY = "uname_r"


class ConfigLineMerger:
    """
    Computes the updated remote file and its ChangeLog in one pass.

    When a key appears several times, the k-th local occurrence is paired with
    the k-th remote occurrence, so re-running the merge on its own output is a
    no-op.
    """

    def merge(self, local: ConfigFile, remote: ConfigFile) -> MergeResult:
        # Working copy of the remote lines; replacements land in place.
        output: List[ConfigLine] = list(remote.lines)
        appended: List[ConfigLine] = []
        changelog: List[ChangeEntry] = []

        positions = self._index_assignments(remote)
        claimed: Dict[str, int] = defaultdict(int)
        present_raw = set(remote.raw_lines)

        for line in local:
            # 1. Blank lines carry no intent
            if line.kind is LineKind.BLANK:
                continue

            if line.is_assignment:
                # 2. Hard-coded protection of the kernel selector
                if line.key == PROTECTED_KEY:
                    changelog.append(ChangeEntry(ChangeKind.SKIP, new=line.raw, key=line.key))
                    continue

                # 3. Pair with the next unclaimed remote line for this key
                occurrence = claimed[line.key]
                claimed[line.key] += 1
                candidates = positions.get(line.key, [])

                if occurrence < len(candidates):
                    index = candidates[occurrence]
                    current = remote.lines[index]
                    if current.raw != line.raw:
                        output[index] = line
                        changelog.append(ChangeEntry(
                            ChangeKind.UPDATE, new=line.raw, key=line.key, old=current.raw
                        ))
                    else:
                        changelog.append(ChangeEntry(
                            ChangeKind.SAME, new=line.raw, key=line.key, old=current.raw
                        ))
                else:
                    appended.append(line)
                    changelog.append(ChangeEntry(ChangeKind.ADD, new=line.raw, key=line.key))
                continue

            # 4. Comments and free text: add only if not present verbatim
            if line.raw in present_raw:
                changelog.append(ChangeEntry(ChangeKind.SAME, new=line.raw))
            else:
                present_raw.add(line.raw)
                appended.append(line)
                changelog.append(ChangeEntry(ChangeKind.ADD, new=line.raw))

        result = MergeResult(
            result=ConfigFile(tuple(output + appended)),
            changelog=tuple(changelog),
        )
        logger.debug(
            "Merged %d local lines into %d remote lines: %d update(s), %d add(s)",
            len(local), len(remote),
            result.count(ChangeKind.UPDATE), result.count(ChangeKind.ADD),
        )
        return result

    def _index_assignments(self, config: ConfigFile) -> Dict[str, List[int]]:
        """Maps each key to the positions of its assignments, in file order."""
        positions: Dict[str, List[int]] = defaultdict(list)
        for index, line in enumerate(config.lines):
            if line.is_assignment:
                positions[line.key].append(index)
        return dict(positions)


def merge(local: ConfigFile, remote: ConfigFile) -> MergeResult:
    """Module-level shortcut around ConfigLineMerger.merge."""
    return ConfigLineMerger().merge(local, remote)

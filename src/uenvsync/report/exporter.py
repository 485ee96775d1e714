#!/usr/bin/env python3
"""
UENVSYNC EXPORTER - ChangeLog Audit Trail
-----------------------------------------
Serializes a merge ChangeLog to YAML so every preview or update can be kept
alongside the device's history.

Author: uenvsync maintainers
Date: 2026-10-19
"""

import io
import time
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq

from uenvsync.core.models import ChangeEntry, ChangeKind, MergeResult


class ChangeLogExporter:
    """
    Converts a MergeResult into a commented YAML document.
    """

    def __init__(self):
        self.yaml = YAML(typ='rt')
        self.yaml.indent(mapping=2, sequence=4, offset=2)
        # uEnv.txt lines (cmdline, optargs) can be long; never fold them
        self.yaml.width = 4096

    def _entry_map(self, entry: ChangeEntry) -> CommentedMap:
        item = CommentedMap()
        item["action"] = entry.kind.value
        if entry.key is not None:
            item["key"] = entry.key
        if entry.kind is ChangeKind.UPDATE:
            item["from"] = entry.old
            item["to"] = entry.new
        else:
            item["line"] = entry.new
        return item

    def build(self, result: MergeResult, local_path: str, remote_path: str) -> CommentedMap:
        doc = CommentedMap()
        doc["generated"] = time.strftime("%Y-%m-%d %H:%M:%S")
        doc["local"] = local_path
        doc["remote"] = remote_path

        summary = CommentedMap()
        for kind in ChangeKind:
            summary[kind.value] = result.count(kind)
        doc["summary"] = summary

        changes = CommentedSeq()
        for entry in result.changelog:
            changes.append(self._entry_map(entry))
        doc["changes"] = changes

        doc.yaml_set_start_comment("uenvsync change log")
        return doc

    def export(self, result: MergeResult, local_path: str, remote_path: str) -> str:
        stream = io.StringIO()
        self.yaml.dump(self.build(result, local_path, remote_path), stream)
        return stream.getvalue()

    def write(self, target: Path, result: MergeResult, local_path: str, remote_path: str) -> Path:
        target = Path(target)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.export(result, local_path, remote_path), encoding='utf-8')
        return target

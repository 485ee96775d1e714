#!/usr/bin/env python3
"""
UENVSYNC LEXER - Line Classifier
--------------------------------
Decomposes raw uEnv.txt text into ConfigLine models and renders them back.
The lexer never rejects input: anything that is not a recognisable
`key=value` line is kept verbatim as a Comment or Other line.

Author: uenvsync maintainers
Date: 2026-10-19
"""

import re
from typing import Iterable, Tuple

from uenvsync.core.models import ConfigFile, ConfigLine, LineKind

UTF8_BOM = b"\xef\xbb\xbf"


class UEnvLexer:
    """
    Classifies lines of a key=value boot configuration file.
    Commented-out assignments ('#optargs=quiet') still yield their key so they
    can be matched against live ones.
    """

    # Group 1: comment marker, Group 2: key, Group 3: value (after first '=')
    ASSIGNMENT_PATTERN = re.compile(r'^\s*(#?)([A-Za-z_][A-Za-z0-9_]*)\s*=(.*)$')

    def _clean_artifacts(self, text: str) -> str:
        """Removes a UTF-8 BOM marker and standardizes line endings."""
        text = text.lstrip('\ufeff')
        return text.replace('\r\n', '\n')

    def classify(self, raw_line: str) -> ConfigLine:
        """Turns one raw line into a ConfigLine."""
        if not raw_line.strip():
            return ConfigLine(raw=raw_line, kind=LineKind.BLANK)

        match = self.ASSIGNMENT_PATTERN.match(raw_line)
        if match:
            marker, key, value = match.groups()
            return ConfigLine(
                raw=raw_line,
                kind=LineKind.ASSIGNMENT,
                key=key.strip(),
                commented=marker == '#',
                value=value,
            )

        if raw_line.lstrip().startswith('#'):
            return ConfigLine(raw=raw_line, kind=LineKind.COMMENT)

        return ConfigLine(raw=raw_line, kind=LineKind.OTHER)

    def parse(self, text: str) -> ConfigFile:
        """Parses full file text into an immutable ConfigFile."""
        clean_text = self._clean_artifacts(text)
        # Only '\n' separates lines; \x0c, \x85, lone '\r' etc. stay inside raw
        raw_lines = clean_text.split('\n')
        if raw_lines[-1] == '':
            raw_lines.pop()
        return ConfigFile(tuple(self.classify(line) for line in raw_lines))

    def decode(self, data: bytes) -> Tuple[str, bool]:
        """
        Decodes file content, returning (text, had_bom).
        Bytes that are not valid UTF-8 survive as surrogates so `encode`
        gives them back unchanged.
        """
        has_bom = data.startswith(UTF8_BOM)
        if has_bom:
            data = data[len(UTF8_BOM):]
        return data.decode('utf-8', errors='surrogateescape'), has_bom

    def encode(self, config: ConfigFile, bom: bool = False) -> bytes:
        """Renders `config` back to bytes, restoring any original BOM."""
        data = config.render().encode('utf-8', errors='surrogateescape')
        return UTF8_BOM + data if bom else data

    def parse_bytes(self, data: bytes) -> ConfigFile:
        """Decodes file content (BOM tolerant, byte preserving) and parses it."""
        text, _ = self.decode(data)
        return self.parse(text)

    def from_lines(self, lines: Iterable[str]) -> ConfigFile:
        """Builds a ConfigFile from already split raw lines."""
        return ConfigFile(tuple(self.classify(line) for line in lines))


"""Front matter parsing for skill, command and agent documents.

A document starts with a ``---`` line, carries YAML ``key: value`` pairs and
closes the header with another ``---`` line. Parsing goes through
``yaml.safe_load`` so folded and literal block values work. Headers that are
not valid YAML (unquoted colons in a description are the usual culprit) are
read again with a line scanner so that listings still show something.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DELIMITER = "---"

_KEY_LINE = re.compile(r"^([A-Za-z0-9_-]+):(?:\s+(.*))?$")
_BLOCK_INDICATORS = {"|", "|-", "|+", ">", ">-", ">+"}


@dataclass
class FrontMatter:
    """Parsed header of a markdown document.

    Attributes:
        present: First line is the ``---`` delimiter
        terminated: A closing ``---`` line was found
        fields: Top-level keys and their values
        yaml_error: Why the header is not valid YAML, if it is not
    """

    present: bool = False
    terminated: bool = False
    fields: dict[str, Any] = field(default_factory=dict)
    yaml_error: str | None = None

    def has(self, key: str) -> bool:
        return key in self.fields

    def get_text(self, key: str) -> str:
        """Return a field as text, empty when absent or null."""
        value = self.fields.get(key)
        return "" if value is None else str(value)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        return value[1:-1]
    return value


def scan_fields(lines: list[str]) -> dict[str, str]:
    """Extract top-level ``key: value`` pairs without a YAML parser.

    Indented lines following a key with an empty value or a block indicator
    are that key's continuation; ``|`` keeps line breaks, anything else
    folds them into spaces.
    """
    fields: dict[str, str] = {}
    key: str | None = None
    style = ""
    block: list[str] = []

    def flush() -> None:
        if key is None:
            return
        joiner = "\n" if style.startswith("|") else " "
        fields[key] = joiner.join(part for part in block if part).strip()

    for line in lines:
        match = _KEY_LINE.match(line)
        if match and not line[:1].isspace():
            flush()
            name, value = match.group(1), (match.group(2) or "").strip()
            if value in _BLOCK_INDICATORS or not value:
                key, style, block = name, value, []
            else:
                fields[name] = _unquote(value)
                key, style, block = None, "", []
        elif key is not None and (line[:1].isspace() or not line.strip()):
            block.append(line.strip())
    flush()
    return fields


def parse_frontmatter(text: str) -> FrontMatter:
    """Parse the front matter at the top of ``text``."""
    lines = text.splitlines()
    if not lines or lines[0].rstrip() != DELIMITER:
        return FrontMatter()

    end = next((i for i in range(1, len(lines)) if lines[i].rstrip() == DELIMITER), None)
    if end is None:
        return FrontMatter(present=True, terminated=False, fields=scan_fields(lines[1:]))

    header = lines[1:end]
    result = FrontMatter(present=True, terminated=True)
    try:
        loaded = yaml.safe_load("\n".join(header) + "\n")
    except yaml.YAMLError as e:
        result.yaml_error = str(e).replace("\n", " ")
        result.fields = scan_fields(header)
        return result

    if loaded is None:
        return result
    if not isinstance(loaded, dict):
        result.yaml_error = (
            f"front matter must be a YAML mapping (key-value pairs), got {type(loaded).__name__}"
        )
        result.fields = scan_fields(header)
        return result

    result.fields = {str(k): v for k, v in loaded.items()}
    return result


def read_frontmatter(path: Path) -> FrontMatter:
    """Read ``path`` and parse its front matter.

    Raises:
        OSError: File cannot be read
        UnicodeDecodeError: File is not UTF-8 text
    """
    return parse_frontmatter(path.read_text(encoding="utf-8"))


def summarize(value: str, width: int = 60) -> str:
    """Collapse whitespace and cut ``value`` to ``width`` characters."""
    return " ".join(value.split())[:width]

"""The marketplace registry (``.claude-plugin/marketplace.json``).

The registry is read and written as a whole. Keys this module does not know
about are kept as they are, so a load/save cycle only changes what the
caller changed.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from .debug import DebugConsole
from .errors import RegistryError
from .schemas import REGISTRY_SCHEMA, validate_json_schema


class PluginStatus(Enum):
    STABLE = "stable"
    BETA = "beta"
    ALPHA = "alpha"
    DEPRECATED = "deprecated"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> PluginStatus:
        """Map a registry ``status`` value; anything unrecognized is UNKNOWN.

        A missing status means the entry predates the field and is stable.
        """
        if value is None:
            return cls.STABLE
        for status in cls:
            if status is not cls.UNKNOWN and status.value == value:
                return status
        return cls.UNKNOWN


@dataclass
class Registry:
    """In-memory marketplace.json document."""

    data: dict[str, Any]

    @property
    def name(self) -> str:
        return str(self.data.get("name", ""))

    @property
    def version(self) -> str | None:
        version = self.data.get("version")
        return None if version is None else str(version)

    @property
    def plugins(self) -> list[dict[str, Any]]:
        return self.data.setdefault("plugins", [])

    @property
    def category_ids(self) -> list[str]:
        categories = self.data.get("categories") or []
        return [str(c["id"]) for c in categories if isinstance(c, dict) and "id" in c]

    def find(self, name: str) -> dict[str, Any] | None:
        return next((p for p in self.plugins if p.get("name") == name), None)

    def remove(self, name: str) -> int:
        """Drop every entry called ``name``; return how many were dropped."""
        kept = [p for p in self.plugins if p.get("name") != name]
        removed = len(self.plugins) - len(kept)
        self.data["plugins"] = kept
        return removed

    def add(self, entry: dict[str, Any]) -> None:
        """Append ``entry``, replacing any entry with the same name."""
        self.remove(entry["name"])
        self.plugins.append(entry)


def load_registry(path: Path) -> Registry:
    """Read and check marketplace.json.

    Raises:
        RegistryError: File missing, unreadable, not JSON, or failing the
            registry schema
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise RegistryError(f"marketplace.json not found at {path}") from None
    except PermissionError:
        raise RegistryError(f"Permission denied reading {path}") from None
    except json.JSONDecodeError as e:
        raise RegistryError(
            f"Invalid JSON in marketplace.json\n  Line {e.lineno}, column {e.colno}: {e.msg}"
        ) from None
    except UnicodeDecodeError:
        raise RegistryError(
            "marketplace.json is not valid UTF-8\n  Ensure file is text, not binary"
        ) from None
    except OSError as e:
        raise RegistryError(f"Cannot read marketplace.json: {e}") from None

    problems = validate_json_schema(data, REGISTRY_SCHEMA, "marketplace.json")
    if problems:
        raise RegistryError("\n".join(problems))

    DebugConsole.debug(f"Loaded registry {path} with {len(data['plugins'])} plugin(s)")
    return Registry(data)


def save_registry(path: Path, registry: Registry) -> None:
    """Write the registry through a temp file renamed over ``path``.

    Raises:
        RegistryError: The registry directory is not writable
    """
    payload = json.dumps(registry.data, indent=2, ensure_ascii=False) + "\n"
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as e:
        raise RegistryError(f"Cannot write marketplace.json: {e}") from None
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o777)
        os.replace(tmp_name, path)
    except OSError as e:
        Path(tmp_name).unlink(missing_ok=True)
        raise RegistryError(f"Cannot write marketplace.json: {e}") from None
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    DebugConsole.debug(f"Wrote registry {path} ({len(registry.plugins)} plugin(s))")

"""Plugin manifest (``.claude-plugin/plugin.json``) loading and checks."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ManifestError
from .schemas import KEBAB_CASE_PATTERN, PLUGIN_MANIFEST_SCHEMA, SEMVER_PATTERN, validate_json_schema

KEBAB_CASE = re.compile(KEBAB_CASE_PATTERN)
SEMVER = re.compile(SEMVER_PATTERN)

DEFAULT_VERSION = "1.0.0"
DEFAULT_DESCRIPTION = "No description"
DEFAULT_AUTHOR = "Unknown"


def is_kebab_case(name: str) -> bool:
    return bool(KEBAB_CASE.match(name))


def is_semver(version: str) -> bool:
    return bool(SEMVER.match(version))


@dataclass
class Author:
    name: str
    email: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"name": self.name}
        if self.email:
            data["email"] = self.email
        return data


@dataclass
class PluginManifest:
    """The registration-relevant view of a plugin.json, defaults applied."""

    name: str
    version: str = DEFAULT_VERSION
    description: str = DEFAULT_DESCRIPTION
    author: Author = field(default_factory=lambda: Author(DEFAULT_AUTHOR))
    license: str | None = None
    keywords: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], fallback_name: str) -> PluginManifest:
        author_data = data.get("author")
        if not isinstance(author_data, dict):
            author_data = {}
        keywords = data.get("keywords")
        return cls(
            name=str(data.get("name") or fallback_name),
            version=str(data.get("version") or DEFAULT_VERSION),
            description=str(data.get("description") or DEFAULT_DESCRIPTION),
            author=Author(
                name=str(author_data.get("name") or DEFAULT_AUTHOR),
                email=author_data.get("email") or None,
            ),
            license=data.get("license"),
            keywords=list(keywords) if isinstance(keywords, list) else [],
        )


def read_manifest_json(path: Path) -> dict[str, Any]:
    """Load a plugin.json file as a JSON object.

    Raises:
        ManifestError: File missing, unreadable, not JSON, or not an object
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ManifestError(f"plugin.json not found at {path}") from None
    except PermissionError:
        raise ManifestError(f"Permission denied reading {path}") from None
    except json.JSONDecodeError as e:
        raise ManifestError(
            f"Invalid JSON in {path}\n  Line {e.lineno}, column {e.colno}: {e.msg}"
        ) from None
    except UnicodeDecodeError:
        raise ManifestError(f"{path} is not valid UTF-8\n  Ensure file is text, not binary") from None
    except OSError as e:
        raise ManifestError(f"Cannot read {path}: {e}") from None

    if not isinstance(data, dict):
        raise ManifestError(f"{path} must contain a JSON object, got {type(data).__name__}")
    return data


def load_manifest(path: Path, fallback_name: str) -> PluginManifest:
    """Load plugin.json into a ``PluginManifest`` with defaults filled in."""
    return PluginManifest.from_dict(read_manifest_json(path), fallback_name)


def schema_problems(data: dict[str, Any]) -> list[str]:
    """Describe type mismatches in a manifest, one message per problem."""
    return validate_json_schema(data, PLUGIN_MANIFEST_SCHEMA, "plugin.json")

"""Pytest configuration for marketplace_kit tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from marketplace_kit.config import MarketplaceConfig
from marketplace_kit.debug import DebugConsole
from marketplace_kit.scaffold import VcsIdentity

PluginFactory = Callable[..., Path]


def sample_registry() -> dict[str, Any]:
    return {
        "name": "test-marketplace",
        "version": "1.2.0",
        "owner": {"name": "Test Owner", "email": "owner@example.com"},
        "categories": [
            {"id": "utilities", "name": "Utilities", "description": "General tools", "icon": "🔧"},
            {"id": "security", "name": "Security", "description": "Security tools", "icon": "🔒"},
        ],
        "plugins": [],
    }


def write_registry(root: Path, data: dict[str, Any]) -> Path:
    path = root / ".claude-plugin" / "marketplace.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def read_registry(root: Path) -> dict[str, Any]:
    return json.loads((root / ".claude-plugin" / "marketplace.json").read_text(encoding="utf-8"))


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests independent of the caller's marketplace and debug state."""
    monkeypatch.delenv("MARKETPLACE_ROOT", raising=False)
    DebugConsole.enabled = False


@pytest.fixture
def marketplace_root(tmp_path: Path) -> Path:
    """An empty marketplace: registry with no plugins and an empty plugins/ dir."""
    root = tmp_path / "marketplace"
    (root / "plugins").mkdir(parents=True)
    write_registry(root, sample_registry())
    return root


@pytest.fixture
def config(marketplace_root: Path) -> MarketplaceConfig:
    return MarketplaceConfig.for_root(marketplace_root)


@pytest.fixture
def identity() -> VcsIdentity:
    return VcsIdentity(author_name="Jane Doe", github_user="jdoe", repo_name="skills-repo")


@pytest.fixture
def valid_manifest() -> dict[str, Any]:
    return {
        "name": "sample-plugin",
        "version": "1.0.0",
        "description": "A sample plugin",
        "author": {"name": "Jane Doe", "email": "jane@example.com"},
        "license": "MIT",
        "keywords": ["sample", "testing"],
    }


@pytest.fixture
def make_plugin(config: MarketplaceConfig, valid_manifest: dict[str, Any]) -> PluginFactory:
    """Create a plugin directory under plugins/.

    Keyword arguments:
        manifest: plugin.json content; a dict is dumped as JSON, a str is
            written verbatim, None leaves plugin.json out
        skills: mapping of skill directory name to SKILL.md text (None for
            a skill directory without SKILL.md)
        commands: mapping of command file name to text
        agents: mapping of agent file name to text
    """

    def factory(
        name: str = "sample-plugin",
        manifest: dict[str, Any] | str | None = valid_manifest,
        skills: dict[str, str | None] | None = None,
        commands: dict[str, str] | None = None,
        agents: dict[str, str] | None = None,
    ) -> Path:
        plugin_dir = config.plugin_dir(name)
        plugin_dir.mkdir(parents=True)
        if manifest is not None:
            manifest_path = plugin_dir / ".claude-plugin" / "plugin.json"
            manifest_path.parent.mkdir()
            if isinstance(manifest, str):
                manifest_path.write_text(manifest, encoding="utf-8")
            else:
                manifest_path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        for skill_name, text in (skills or {}).items():
            skill_dir = plugin_dir / "skills" / skill_name
            skill_dir.mkdir(parents=True)
            if text is not None:
                (skill_dir / "SKILL.md").write_text(text, encoding="utf-8")
        for filename, text in (commands or {}).items():
            (plugin_dir / "commands").mkdir(exist_ok=True)
            (plugin_dir / "commands" / filename).write_text(text, encoding="utf-8")
        for filename, text in (agents or {}).items():
            (plugin_dir / "agents").mkdir(exist_ok=True)
            (plugin_dir / "agents" / filename).write_text(text, encoding="utf-8")
        return plugin_dir

    return factory

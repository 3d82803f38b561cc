"""Read-only listing of the plugins in the marketplace registry.

Component counts come from the plugin directories on disk, not from the
registry.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape

from .config import DEFAULT_CATEGORY, MarketplaceConfig, validate_plugin_path
from .frontmatter import read_frontmatter, summarize
from .manifest import DEFAULT_VERSION
from .registry import PluginStatus, load_registry

# glyph, rich style (None for no colour)
STATUS_GLYPHS: dict[PluginStatus, tuple[str, str | None]] = {
    PluginStatus.STABLE: ("●", "green"),
    PluginStatus.BETA: ("●", "yellow"),
    PluginStatus.ALPHA: ("○", "yellow"),
    PluginStatus.DEPRECATED: ("○", None),
    PluginStatus.UNKNOWN: ("●", None),
}

SKILL_DESCRIPTION_WIDTH = 60
HEAVY_RULE = "═" * 63
LIGHT_RULE = "─" * 63


@dataclass
class ComponentCounts:
    skills: int = 0
    commands: int = 0
    agents: int = 0

    def describe(self) -> str:
        parts = []
        if self.skills:
            parts.append(f"{self.skills} skill(s)")
        if self.commands:
            parts.append(f"{self.commands} cmd(s)")
        if self.agents:
            parts.append(f"{self.agents} agent(s)")
        return ", ".join(parts) or "empty"


@dataclass
class SkillSummary:
    name: str
    description: str


@dataclass
class PluginListing:
    name: str
    version: str
    category: str
    status: PluginStatus
    featured: bool
    description: str
    counts: ComponentCounts
    skills: list[SkillSummary] = field(default_factory=list)


@dataclass
class MarketplaceListing:
    name: str
    version: str | None
    plugins: list[PluginListing]


def plugin_dir_for(config: MarketplaceConfig, entry: dict[str, Any]) -> Path:
    """Local directory of a registry entry, falling back to ``plugins/<name>``."""
    name = str(entry.get("name", ""))
    source = entry.get("source")
    if isinstance(source, str) and source:
        path, error = validate_plugin_path(config.root, source, name)
        if error is None and path is not None:
            return path
    return config.plugin_dir(name)


def count_components(plugin_dir: Path) -> ComponentCounts:
    def count(subdir: str, pattern: str) -> int:
        directory = plugin_dir / subdir
        if not directory.is_dir():
            return 0
        return sum(1 for p in directory.rglob(pattern) if p.is_file())

    return ComponentCounts(
        skills=count("skills", "SKILL.md"),
        commands=count("commands", "*.md"),
        agents=count("agents", "*.md"),
    )


def skill_summaries(plugin_dir: Path) -> list[SkillSummary]:
    """Name and shortened description of each ``skills/*/SKILL.md``."""
    skills_dir = plugin_dir / "skills"
    if not skills_dir.is_dir():
        return []

    summaries: list[SkillSummary] = []
    for skill_md in sorted(skills_dir.glob("*/SKILL.md")):
        try:
            description = read_frontmatter(skill_md).get_text("description")
        except (OSError, UnicodeDecodeError):
            description = ""
        summaries.append(
            SkillSummary(
                name=skill_md.parent.name,
                description=summarize(description, SKILL_DESCRIPTION_WIDTH),
            )
        )
    return summaries


def list_plugins(config: MarketplaceConfig, *, with_skills: bool = False) -> MarketplaceListing:
    """Build the listing for every registry entry.

    Raises:
        RegistryError: marketplace.json missing or malformed
    """
    registry = load_registry(config.registry_path)
    plugins: list[PluginListing] = []
    for entry in registry.plugins:
        plugin_dir = plugin_dir_for(config, entry)
        plugins.append(
            PluginListing(
                name=str(entry.get("name", "unknown")),
                version=str(entry.get("version") or DEFAULT_VERSION),
                category=str(entry.get("category") or DEFAULT_CATEGORY),
                status=PluginStatus.parse(entry.get("status")),
                featured=entry.get("featured") is True,
                description=str(entry.get("description") or ""),
                counts=count_components(plugin_dir),
                skills=skill_summaries(plugin_dir) if with_skills else [],
            )
        )
    return MarketplaceListing(name=registry.name, version=registry.version, plugins=plugins)


def plugins_json(config: MarketplaceConfig) -> str:
    """The registry's ``plugins`` array as pretty-printed JSON."""
    registry = load_registry(config.registry_path)
    return json.dumps(registry.plugins, indent=2, ensure_ascii=False)


def status_glyph(status: PluginStatus) -> str:
    glyph, style = STATUS_GLYPHS[status]
    return f"[{style}]{glyph}[/{style}]" if style else glyph


def print_listing(listing: MarketplaceListing, console: Console, *, verbose: bool = False) -> None:
    console.print(f"[cyan]{HEAVY_RULE}[/cyan]")
    console.print(f"[cyan]  {escape(listing.name)} v{escape(listing.version or 'unknown')}[/cyan]")
    console.print(f"[cyan]  {len(listing.plugins)} plugin(s) available[/cyan]")
    console.print(f"[cyan]{HEAVY_RULE}[/cyan]")
    console.print()

    for plugin in listing.plugins:
        featured = " [magenta]★[/magenta]" if plugin.featured else ""
        console.print(
            f"{status_glyph(plugin.status)} [green]{escape(plugin.name)}[/green] "
            f"v{escape(plugin.version)} {escape('[' + plugin.category + ']')}{featured}",
            highlight=False,
        )
        console.print(f"    {plugin.counts.describe()}", highlight=False)
        console.print(f"    {escape(plugin.description)}", highlight=False)
        if verbose:
            for skill in plugin.skills:
                console.print(
                    f"      └─ [cyan]{escape(skill.name)}[/cyan]: {escape(skill.description)}...",
                    highlight=False,
                )
        console.print()

    console.print(f"[cyan]{LIGHT_RULE}[/cyan]")
    console.print()
    console.print("Commands:")
    console.print("  marketplace validate <name>   Validate a plugin")
    console.print("  marketplace create <name>     Create a new plugin")
    console.print("  marketplace register <name>   Register in marketplace")
    console.print()
    console.print("Test locally:")
    console.print("  claude --plugin-dir ./plugins/<name>", highlight=False)

"""Add or replace a plugin's entry in the marketplace registry."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .config import DEFAULT_CATEGORY, MarketplaceConfig
from .debug import DebugConsole
from .errors import ConflictError, UsageError
from .manifest import PluginManifest, is_kebab_case, load_manifest
from .registry import PluginStatus, load_registry, save_registry

# Decides whether an existing entry (first argument) may be replaced by the
# candidate entry (second argument).
ConfirmOverwrite = Callable[[dict[str, Any], dict[str, Any]], bool]


@dataclass
class RegistrationResult:
    entry: dict[str, Any]
    replaced: dict[str, Any] | None = None
    warnings: list[str] = field(default_factory=list)


def build_entry(
    config: MarketplaceConfig, manifest: PluginManifest, name: str, category: str
) -> dict[str, Any]:
    """Registry entry for ``manifest``; key order matches the on-disk layout."""
    return {
        "name": name,
        "source": config.plugin_source(name),
        "description": manifest.description,
        "version": manifest.version,
        "author": manifest.author.to_dict(),
        "keywords": list(manifest.keywords),
        "category": category,
        "featured": False,
        "status": PluginStatus.STABLE.value,
    }


def register_plugin(
    config: MarketplaceConfig,
    name: str,
    category: str = DEFAULT_CATEGORY,
    confirm: ConfirmOverwrite | None = None,
) -> RegistrationResult:
    """Register ``plugins/<name>`` in marketplace.json.

    Args:
        config: Marketplace layout
        name: Plugin directory name
        category: Registry category id
        confirm: Called with (existing, candidate) when the plugin is already
            registered; returning False aborts. None means no one can be
            asked, which also aborts.

    Returns:
        The new entry, the entry it replaced (if any) and non-fatal warnings

    Raises:
        UsageError: Name is not kebab-case or plugin directory not found
        ManifestError: plugin.json missing or malformed
        RegistryError: marketplace.json missing or malformed
        ConflictError: Already registered and the overwrite was not confirmed
    """
    if not is_kebab_case(name):
        raise UsageError(f"Plugin name must be kebab-case (lowercase letters, numbers, hyphens): {name!r}")

    plugin_dir = config.plugin_dir(name)
    if not plugin_dir.is_dir():
        raise UsageError(f"Plugin not found at {plugin_dir}")

    manifest = load_manifest(config.manifest_path(name), fallback_name=name)
    registry = load_registry(config.registry_path)

    result = RegistrationResult(entry=build_entry(config, manifest, name, category))
    known_categories = registry.category_ids
    if known_categories and category not in known_categories:
        result.warnings.append(
            f"Category '{category}' is not defined in marketplace.json "
            f"(known: {', '.join(known_categories)})"
        )

    existing = registry.find(name)
    if existing is not None:
        if confirm is None:
            raise ConflictError(
                f"Plugin '{name}' is already registered (version {existing.get('version', 'unknown')}); "
                "pass --yes to replace the entry"
            )
        if not confirm(existing, result.entry):
            raise ConflictError(f"Plugin '{name}' is already registered; entry left unchanged")
        result.replaced = existing

    registry.add(result.entry)
    save_registry(config.registry_path, registry)
    DebugConsole.debug_dict(f"Registered {name}", result.entry)
    return result

"""Marketplace location and layout.

Every operation takes a ``MarketplaceConfig`` explicitly. ``resolve_config``
is the only place that looks at the environment or the working directory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .debug import DebugConsole

ROOT_ENV_VAR = "MARKETPLACE_ROOT"

REGISTRY_RELPATH = Path(".claude-plugin") / "marketplace.json"
MANIFEST_RELPATH = Path(".claude-plugin") / "plugin.json"
PLUGINS_DIRNAME = "plugins"
TEMPLATE_DIRNAME = "_template"

DEFAULT_CATEGORY = "utilities"
SUGGESTED_CATEGORIES = (
    "utilities",
    "development",
    "documentation",
    "security",
    "testing",
    "devops",
)


@dataclass(frozen=True)
class MarketplaceConfig:
    """Paths making up one marketplace checkout.

    Attributes:
        root: Marketplace root directory
        plugins_dir: Directory holding one subdirectory per plugin
        registry_path: The marketplace.json registry file
        template_dir: Directory scaffolded by ``create``; None means the
            template bundled with this package
    """

    root: Path
    plugins_dir: Path
    registry_path: Path
    template_dir: Path | None = None

    @classmethod
    def for_root(cls, root: Path | str) -> MarketplaceConfig:
        """Build the default layout under ``root``."""
        root = Path(root).resolve()
        plugins_dir = root / PLUGINS_DIRNAME
        template_dir: Path | None = plugins_dir / TEMPLATE_DIRNAME
        if not template_dir.is_dir():
            template_dir = None
        return cls(
            root=root,
            plugins_dir=plugins_dir,
            registry_path=root / REGISTRY_RELPATH,
            template_dir=template_dir,
        )

    def plugin_dir(self, name: str) -> Path:
        return self.plugins_dir / name

    def manifest_path(self, name: str) -> Path:
        return self.plugin_dir(name) / MANIFEST_RELPATH

    def plugin_source(self, name: str) -> str:
        """Registry ``source`` value for a plugin, relative to the root."""
        try:
            rel = self.plugins_dir.relative_to(self.root).as_posix()
        except ValueError:
            return (self.plugins_dir / name).as_posix()
        return f"./{rel}/{name}" if rel != "." else f"./{name}"


def validate_plugin_path(
    base_dir: Path, relative_path: str, context: str
) -> tuple[Path | None, str | None]:
    """Validate a registry-relative path stays within the base directory.

    Args:
        base_dir: Base directory (marketplace root)
        relative_path: Relative path string from the registry
        context: Context for error messages

    Returns:
        Tuple of (resolved_path, error_message). If error, path is None.
    """
    try:
        base_resolved = base_dir.resolve()
        # normpath collapses ".." before the containment check
        normalized = Path(os.path.normpath(os.path.join(str(base_resolved), relative_path)))
        try:
            normalized.relative_to(base_resolved)
        except ValueError:
            return None, f"{context}: Path escapes marketplace root: {relative_path}"
        return normalized, None
    except OSError as e:
        return None, f"{context}: Invalid path: {e}"


def find_marketplace_root(start: Path) -> Path | None:
    """Return the nearest ancestor of ``start`` holding a registry, if any."""
    start = start.resolve()
    for candidate in (start, *start.parents):
        if (candidate / REGISTRY_RELPATH).is_file():
            return candidate
    return None


def resolve_config(root: str | Path | None = None, cwd: Path | None = None) -> MarketplaceConfig:
    """Resolve the marketplace root and build its config.

    Order: explicit ``root``, the MARKETPLACE_ROOT environment variable,
    the nearest ancestor of ``cwd`` with a registry, then ``cwd`` itself.
    """
    cwd = cwd or Path.cwd()
    source = "argument"
    if root is None:
        env_root = os.environ.get(ROOT_ENV_VAR)
        if env_root:
            root, source = env_root, ROOT_ENV_VAR
        else:
            found = find_marketplace_root(cwd)
            root, source = (found, "discovered") if found else (cwd, "cwd")

    config = MarketplaceConfig.for_root(root)
    DebugConsole.debug_dict(
        f"Marketplace config ({source})",
        {
            "root": config.root,
            "plugins_dir": config.plugins_dir,
            "registry_path": config.registry_path,
            "template_dir": config.template_dir or "<bundled>",
        },
    )
    return config

"""Verify the whole marketplace: the registry document and every local plugin it lists."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import MarketplaceConfig, validate_plugin_path
from .registry import PluginStatus, load_registry
from .schemas import REGISTRY_ENTRY_SCHEMA, validate_json_schema
from .validate import ValidationReport, validate_plugin_dir


@dataclass
class PluginVerification:
    name: str
    report: ValidationReport | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    info: list[str] = field(default_factory=list)

    @property
    def all_errors(self) -> list[str]:
        return self.errors + (self.report.errors if self.report else [])

    @property
    def all_warnings(self) -> list[str]:
        return self.warnings + (self.report.warnings if self.report else [])


@dataclass
class MarketplaceVerification:
    marketplace_errors: list[str] = field(default_factory=list)
    plugins: dict[str, PluginVerification] = field(default_factory=dict)


def _verify_entry(config: MarketplaceConfig, entry: dict[str, Any], name: str) -> PluginVerification:
    result = PluginVerification(name=name)

    status = PluginStatus.parse(entry.get("status"))
    if status is PluginStatus.UNKNOWN:
        result.warnings.append(
            f"{name}: Unrecognized status '{entry.get('status')}' "
            f"(valid: {', '.join(s.value for s in PluginStatus if s is not PluginStatus.UNKNOWN)})"
        )

    source = entry.get("source", "")
    if isinstance(source, dict):
        if "repo" in source or "url" in source:
            result.info.append("External source; not validated locally")
        else:
            result.errors.append(f"Plugin '{name}' has object 'source' missing 'repo' or 'url'")
        return result

    if not source or not isinstance(source, str):
        result.errors.append(f"Plugin '{name}' missing 'source' field")
        return result

    plugin_dir, error = validate_plugin_path(config.root, source, f"Plugin '{name}'")
    if error:
        result.errors.append(error)
        return result
    if plugin_dir is None or not plugin_dir.is_dir():
        result.errors.append(f"Plugin '{name}' source directory not found: {source}")
        return result

    result.report = validate_plugin_dir(plugin_dir)
    return result


def verify_marketplace(config: MarketplaceConfig) -> MarketplaceVerification:
    """Check registry entries and validate each locally sourced plugin.

    Raises:
        RegistryError: marketplace.json missing or malformed
    """
    registry = load_registry(config.registry_path)
    result = MarketplaceVerification()

    for i, entry in enumerate(registry.plugins):
        name = str(entry.get("name", f"plugins[{i}]"))
        result.marketplace_errors.extend(
            validate_json_schema(entry, REGISTRY_ENTRY_SCHEMA, f"marketplace.json plugins[{i}] ({name})")
        )

    counts = Counter(str(p.get("name")) for p in registry.plugins if "name" in p)
    for name, count in sorted(counts.items()):
        if count > 1:
            result.marketplace_errors.append(f"Plugin '{name}' is registered {count} times")

    for i, entry in enumerate(registry.plugins):
        name = str(entry.get("name", f"plugins[{i}]"))
        if name in result.plugins:
            continue
        result.plugins[name] = _verify_entry(config, entry, name)

    return result


def calculate_exit_code(
    result: MarketplaceVerification, *, strict: bool = False
) -> tuple[int, int, int, int]:
    """Calculate exit code and totals based on errors and warnings.

    Returns:
        Tuple of (exit_code, total_errors, total_warnings, total_info)
    """
    total_errors = len(result.marketplace_errors)
    total_warnings = 0
    total_info = 0
    for plugin in result.plugins.values():
        total_errors += len(plugin.all_errors)
        total_warnings += len(plugin.all_warnings)
        total_info += len(plugin.info)

    exit_code = 1 if total_errors > 0 or (strict and total_warnings > 0) else 0
    return exit_code, total_errors, total_warnings, total_info


def print_verification(
    result: MarketplaceVerification, console: Console, *, strict: bool = False
) -> int:
    """Render the verification results and return the exit code."""
    exit_code, total_errors, total_warnings, total_info = calculate_exit_code(result, strict=strict)

    if result.marketplace_errors:
        console.print("[bold red]Marketplace Structure Errors:[/bold red]\n")
        for error in result.marketplace_errors:
            console.print(f"  [red]• {escape(error)}[/red]")
        console.print()

    if result.plugins:

        def status_icon(issues: list[str]) -> str:
            return "[red]✗[/red]" if issues else "[green]✓[/green]"

        table = Table(title="Plugin Validation Summary", show_header=True, header_style="bold cyan")
        table.add_column("Plugin", style="cyan")
        table.add_column("Valid", justify="center")
        table.add_column("Errors", justify="center")
        table.add_column("Warnings", justify="center")
        table.add_column("Notes")

        for name, plugin in result.plugins.items():
            errors, warnings = plugin.all_errors, plugin.all_warnings
            table.add_row(
                escape(name),
                status_icon(errors),
                f"[red]{len(errors)}[/red]" if errors else "[green]0[/green]",
                f"[yellow]{len(warnings)}[/yellow]" if warnings else "[green]0[/green]",
                escape("; ".join(plugin.info)),
            )

        console.print(table)
        console.print()

        for name, plugin in result.plugins.items():
            if plugin.all_errors:
                console.print(f"\n[bold yellow]{escape(name)} - Detailed Errors:[/bold yellow]")
                for error in plugin.all_errors:
                    console.print(f"    [red]• {escape(error)}[/red]")
                console.print()

    if total_warnings > 0:
        warning_style = "red" if strict else "yellow"
        warning_label = "Warnings (treated as errors)" if strict else "Warnings"
        console.print(
            f"\n[bold {warning_style}]{warning_label} ({total_warnings}):[/bold {warning_style}]\n"
        )
        for name, plugin in result.plugins.items():
            if plugin.all_warnings:
                console.print(f"  [bold]{escape(name)}:[/bold]")
                for warning in plugin.all_warnings:
                    console.print(f"    [{warning_style}]• {escape(warning.strip())}[/{warning_style}]")
        console.print()

    if total_info > 0:
        console.print(f"[dim]{total_info} informational note(s) shown in the table above[/dim]\n")

    if exit_code != 0:
        if total_errors == 0:
            message = (
                f"✗ Verification failed due to {total_warnings} warning(s) "
                "(warnings treated as errors in strict mode)"
            )
        else:
            message = f"✗ Verification failed with {total_errors} error(s)"
            if total_warnings > 0:
                message += f" and {total_warnings} warning(s)"
        console.print(
            Panel.fit(
                f"[bold red]{escape(message)}[/bold red]\nSee details above for specific issues.",
                border_style="red",
            )
        )
    else:
        message = "✅ All verification checks passed!"
        if total_warnings > 0:
            message += f"\n{total_warnings} warning(s) found but not failing (normal mode)"
        console.print(Panel.fit(f"[bold green]{message}[/bold green]", border_style="green"))

    return exit_code

"""Structure validation for a single plugin directory.

Checks are read-only. Each one adds a line to a section of the
``ValidationReport``; errors fail validation, warnings do not (unless the
caller asks for strict mode).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape

from .config import MANIFEST_RELPATH, MarketplaceConfig
from .debug import DebugConsole
from .errors import ManifestError, UsageError
from .frontmatter import read_frontmatter
from .manifest import is_kebab_case, is_semver, read_manifest_json, schema_problems

REQUIRED_FILES = "Required Files"
OPTIONAL_DIRECTORIES = "Optional Directories"
SKILLS_VALIDATION = "Skills Validation"
COMMANDS_VALIDATION = "Commands Validation"
AGENTS_VALIDATION = "Agents Validation"

OPTIONAL_DIRS = ("skills", "commands", "agents", "hooks", "scripts")
# These belong at the plugin root, never inside .claude-plugin/
COMPONENT_DIRS = ("skills", "commands", "agents", "hooks")


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Finding:
    severity: Severity
    message: str


@dataclass
class Check:
    """An informational line: something that is present, or optional and absent."""

    label: str
    present: bool


@dataclass
class Section:
    title: str
    items: list[Finding | Check] = field(default_factory=list)

    def ok(self, label: str) -> None:
        self.items.append(Check(label, present=True))

    def absent(self, label: str) -> None:
        self.items.append(Check(label, present=False))

    def error(self, message: str) -> None:
        self.items.append(Finding(Severity.ERROR, message))

    def warn(self, message: str) -> None:
        self.items.append(Finding(Severity.WARNING, message))

    def findings(self, severity: Severity) -> list[str]:
        return [i.message for i in self.items if isinstance(i, Finding) and i.severity is severity]


@dataclass
class ValidationReport:
    plugin_name: str
    plugin_path: Path
    sections: list[Section] = field(default_factory=list)

    def section(self, title: str) -> Section:
        for section in self.sections:
            if section.title == title:
                return section
        section = Section(title)
        self.sections.append(section)
        return section

    @property
    def errors(self) -> list[str]:
        return [m for s in self.sections for m in s.findings(Severity.ERROR)]

    @property
    def warnings(self) -> list[str]:
        return [m for s in self.sections for m in s.findings(Severity.WARNING)]

    def exit_code(self, *, strict: bool = False) -> int:
        """1 when any error was recorded (or any warning in strict mode), else 0."""
        if self.errors or (strict and self.warnings):
            return 1
        return 0


def resolve_plugin_dir(config: MarketplaceConfig, target: str | Path) -> Path:
    """Resolve a filesystem path or a plugin name to a plugin directory.

    Raises:
        UsageError: Neither a directory nor a known plugin name
    """
    path = Path(target)
    if path.is_dir():
        return path.resolve()
    candidate = config.plugin_dir(str(target))
    if candidate.is_dir():
        return candidate
    raise UsageError(f"Plugin not found: {target}")


def check_manifest(plugin_dir: Path, section: Section) -> None:
    """Check plugin.json exists, parses, and carries well-formed identity fields."""
    manifest_path = plugin_dir / MANIFEST_RELPATH
    if not manifest_path.is_file():
        section.error(f"missing plugin.json ({MANIFEST_RELPATH.as_posix()})")
        return

    section.ok(MANIFEST_RELPATH.as_posix())
    try:
        data = read_manifest_json(manifest_path)
    except ManifestError as e:
        section.error(f"plugin.json is not valid: {e}")
        return

    check_manifest_fields(data, section)


def check_manifest_fields(data: dict[str, Any], section: Section) -> None:
    name = data.get("name")
    if name is None or name == "":
        section.error("plugin.json missing 'name' field")
    elif not isinstance(name, str) or not is_kebab_case(name):
        section.warn(f"plugin.json 'name' should be kebab-case: {name}")

    version = data.get("version")
    if version is None or version == "":
        section.warn("plugin.json missing 'version' field")
    elif not isinstance(version, str) or not is_semver(version):
        section.warn(f"plugin.json 'version' should be semver format: {version}")

    if not data.get("description"):
        section.warn("plugin.json missing 'description' field")

    for problem in schema_problems(data):
        section.warn(problem)


def check_optional_directories(plugin_dir: Path, section: Section) -> None:
    for name in OPTIONAL_DIRS:
        label = f"{name}/ directory"
        if (plugin_dir / name).exists():
            section.ok(label)
        else:
            section.absent(label)

    claude_plugin_dir = plugin_dir / MANIFEST_RELPATH.parent
    for name in COMPONENT_DIRS:
        if (claude_plugin_dir / name).exists():
            section.warn(
                f"{name}/ found in .claude-plugin/ but must be at the plugin root"
            )


def check_document(path: Path, label: str, required: list[str], section: Section) -> None:
    """Warn about missing or incomplete front matter in one markdown document."""
    try:
        fm = read_frontmatter(path)
    except UnicodeDecodeError:
        section.warn(f"  {label} is not valid UTF-8")
        return
    except OSError as e:
        section.warn(f"  {label} cannot be read: {e}")
        return

    if not fm.present:
        section.warn(f"  {label} missing YAML frontmatter")
        return
    if not fm.terminated:
        section.warn(f"  {label} frontmatter is not terminated (missing closing ---)")
    elif fm.yaml_error:
        section.warn(f"  {label} frontmatter is not valid YAML: {fm.yaml_error}")

    for key in required:
        if not fm.has(key):
            section.warn(f"  {label} missing '{key}' in frontmatter")
        elif not fm.get_text(key).strip():
            section.warn(f"  {label} has empty '{key}' in frontmatter")


def _visible(paths: list[Path]) -> list[Path]:
    return sorted(p for p in paths if not p.name.startswith("."))


def check_skills(plugin_dir: Path, section: Section) -> None:
    skills_dir = plugin_dir / "skills"
    for skill_dir in _visible([d for d in skills_dir.iterdir() if d.is_dir()]):
        skill_md = skill_dir / "SKILL.md"
        if not skill_md.is_file():
            section.error(f"Skill: {skill_dir.name} (missing SKILL.md)")
            continue
        section.ok(f"Skill: {skill_dir.name}")
        check_document(skill_md, f"{skill_dir.name}/SKILL.md", ["name", "description"], section)


def check_markdown_components(directory: Path, kind: str, section: Section) -> None:
    """Check each ``*.md`` in a commands/ or agents/ directory."""
    for doc in _visible([f for f in directory.glob("*.md") if f.is_file()]):
        section.ok(f"{kind}: {doc.stem}")
        check_document(doc, doc.name, ["description"], section)


def validate_plugin_dir(plugin_dir: Path) -> ValidationReport:
    """Validate the plugin at ``plugin_dir`` and return the full report."""
    report = ValidationReport(plugin_name=plugin_dir.name, plugin_path=plugin_dir)
    DebugConsole.debug(f"Validating plugin at {plugin_dir}")

    check_manifest(plugin_dir, report.section(REQUIRED_FILES))
    check_optional_directories(plugin_dir, report.section(OPTIONAL_DIRECTORIES))

    if (plugin_dir / "skills").is_dir():
        check_skills(plugin_dir, report.section(SKILLS_VALIDATION))
    if (plugin_dir / "commands").is_dir():
        check_markdown_components(plugin_dir / "commands", "Command", report.section(COMMANDS_VALIDATION))
    if (plugin_dir / "agents").is_dir():
        check_markdown_components(plugin_dir / "agents", "Agent", report.section(AGENTS_VALIDATION))

    DebugConsole.debug(
        f"{plugin_dir.name}: {len(report.errors)} error(s), {len(report.warnings)} warning(s)"
    )
    return report


def validate_plugin(config: MarketplaceConfig, target: str | Path) -> ValidationReport:
    """Validate a plugin given by name or path."""
    return validate_plugin_dir(resolve_plugin_dir(config, target))


def summary_message(report: ValidationReport, *, strict: bool = False) -> tuple[str, str]:
    """Return (style, message) for the report's closing line."""
    errors, warnings = len(report.errors), len(report.warnings)
    if errors == 0 and warnings == 0:
        return "green", "✓ Plugin validation passed with no issues"
    if errors == 0 and not strict:
        return "yellow", f"Plugin validation passed with {warnings} warning(s)"
    if errors == 0:
        return "red", f"Plugin validation failed: {warnings} warning(s) treated as errors (--strict)"
    return "red", f"Plugin validation failed with {errors} error(s) and {warnings} warning(s)"


def print_report(report: ValidationReport, console: Console, *, strict: bool = False) -> None:
    console.print(f"[yellow]Validating plugin: {escape(report.plugin_name)}[/yellow]")
    console.print(f"Path: {escape(str(report.plugin_path))}", highlight=False)
    console.print()

    for section in report.sections:
        console.print(f"=== {section.title} ===")
        for item in section.items:
            if isinstance(item, Check):
                if item.present:
                    console.print(f"[green]✓[/green] {escape(item.label)}")
                else:
                    console.print(f"[yellow]○[/yellow] {escape(item.label)} (optional, not present)")
            elif item.severity is Severity.ERROR:
                console.print(f"[red]✗[/red] {escape(item.message)}")
            else:
                console.print(f"[yellow]⚠[/yellow] {escape(item.message)}")
        console.print()

    style, message = summary_message(report, strict=strict)
    console.print("=== Summary ===")
    console.print(f"[{style}]{escape(message)}[/{style}]")

"""Create a new plugin directory from the marketplace template.

The template is rendered in memory, written to a staging directory inside
``plugins/`` and renamed into place, so a failure never leaves a
half-substituted plugin behind.
"""

from __future__ import annotations

import json
import os
import re
import shutil
import stat
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .config import MarketplaceConfig
from .debug import DebugConsole
from .errors import ConflictError, ScaffoldError, UsageError
from .manifest import is_kebab_case
from .templates import TemplateFile, load_template

DEFAULT_DESCRIPTION = "A Claude Code plugin"
DEFAULT_AUTHOR_NAME = "Your Name"
DEFAULT_GITHUB_USER = "user"
DEFAULT_REPO_NAME = "n-agent-skills"

PLACEHOLDER = re.compile(r"\{\{([A-Z][A-Z0-9_]*)\}\}")
_REMOTE_OWNER = re.compile(r".*[:/]([^/:]+)/[^/]+$")


@dataclass(frozen=True)
class VcsIdentity:
    """Author and repository details used to fill template placeholders."""

    author_name: str = DEFAULT_AUTHOR_NAME
    github_user: str = DEFAULT_GITHUB_USER
    repo_name: str = DEFAULT_REPO_NAME


def _git(args: list[str], cwd: Path) -> str | None:
    """Run a git command, returning stripped stdout or None on any failure."""
    cmd = ["git", *args]
    DebugConsole.debug_cmd(cmd)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, cwd=cwd)
    except OSError as e:
        DebugConsole.debug(f"git unavailable: {e}")
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def owner_from_remote(url: str) -> str | None:
    """Extract the owner segment from ``git@host:owner/repo.git`` style URLs."""
    match = _REMOTE_OWNER.match(url.strip().rstrip("/"))
    return match.group(1) if match else None


def repo_from_remote(url: str) -> str | None:
    """Extract the repository name from a remote URL, without ``.git``."""
    last = re.split(r"[:/]", url.strip().rstrip("/"))[-1]
    name = last.removesuffix(".git")
    return name or None


def detect_vcs_identity(cwd: Path) -> VcsIdentity:
    """Read author and repository details from git config, with fallbacks."""
    user_name = _git(["config", "user.name"], cwd)
    remote_url = _git(["config", "--get", "remote.origin.url"], cwd)

    github_user = owner_from_remote(remote_url) if remote_url else None
    if not github_user and user_name:
        github_user = user_name.replace(" ", "-").lower()
    repo_name = repo_from_remote(remote_url) if remote_url else None

    identity = VcsIdentity(
        author_name=user_name or DEFAULT_AUTHOR_NAME,
        github_user=github_user or DEFAULT_GITHUB_USER,
        repo_name=repo_name or DEFAULT_REPO_NAME,
    )
    DebugConsole.debug_dict("VCS identity", vars(identity))
    return identity


def placeholder_values(name: str, description: str, identity: VcsIdentity) -> dict[str, str]:
    return {
        "PLUGIN_NAME": name,
        "PLUGIN_DESCRIPTION": description,
        "AUTHOR_NAME": identity.author_name,
        "GITHUB_USER": identity.github_user,
        "REPO_NAME": identity.repo_name,
    }


def substitute(text: str, values: dict[str, str], *, json_strings: bool = False) -> str:
    """Replace ``{{KEY}}`` tokens whose key is in ``values``.

    With ``json_strings`` the values are escaped for use inside JSON string
    literals.
    """

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in values:
            return match.group(0)
        value = values[key]
        return json.dumps(value)[1:-1] if json_strings else value

    return PLACEHOLDER.sub(replace, text)


def render_template(files: list[TemplateFile], values: dict[str, str]) -> list[TemplateFile]:
    """Substitute placeholders in every UTF-8 text file of a template.

    Raises:
        ScaffoldError: A text file still holds an unknown placeholder
    """
    rendered: list[TemplateFile] = []
    unresolved: dict[str, set[str]] = {}

    for tf in files:
        try:
            text = tf.content.decode("utf-8")
        except UnicodeDecodeError:
            rendered.append(tf)
            continue

        text = substitute(text, values, json_strings=tf.path.suffix == ".json")
        leftovers = set(PLACEHOLDER.findall(text))
        if leftovers:
            unresolved[str(tf.path)] = leftovers
        rendered.append(TemplateFile(tf.path, text.encode("utf-8"), tf.executable))

    if unresolved:
        lines = ["Template has unresolved placeholders:"]
        for path, keys in sorted(unresolved.items()):
            tokens = ", ".join("{{" + key + "}}" for key in sorted(keys))
            lines.append(f"  {path}: {tokens}")
        raise ScaffoldError("\n".join(lines))
    return rendered


def write_tree(dest: Path, files: list[TemplateFile]) -> None:
    """Write rendered files under ``dest``; shell scripts become executable."""
    dest.mkdir(parents=True)
    for tf in files:
        target = dest.joinpath(*tf.path.parts)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(tf.content)
        if tf.executable or tf.path.suffix == ".sh":
            mode = target.stat().st_mode
            target.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def create_plugin(
    config: MarketplaceConfig,
    name: str,
    description: str | None = None,
    identity: VcsIdentity | None = None,
) -> Path:
    """Scaffold ``plugins/<name>`` from the template.

    Args:
        config: Marketplace layout
        name: Plugin name, must be kebab-case
        description: Plugin description, defaults to a generic one
        identity: Placeholder values for author/user/repo; read from git
            when omitted

    Returns:
        Path of the new plugin directory

    Raises:
        UsageError: Name is not kebab-case
        ConflictError: Plugin directory already exists
        ScaffoldError: Template missing or not fully substituted
    """
    if not is_kebab_case(name):
        raise UsageError(
            f"Plugin name must be kebab-case (lowercase letters, numbers, hyphens): {name!r}\n"
            "Example: my-plugin, code-tools, security-scanner"
        )

    target = config.plugin_dir(name)
    if target.exists():
        raise ConflictError(f"Plugin '{name}' already exists at {target}")

    if identity is None:
        identity = detect_vcs_identity(config.root)
    values = placeholder_values(name, description or DEFAULT_DESCRIPTION, identity)
    files = render_template(load_template(config.template_dir), values)
    DebugConsole.debug(f"Rendered {len(files)} template file(s) for {name}")

    config.plugins_dir.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{name}.", dir=config.plugins_dir))
    try:
        build = staging / name
        write_tree(build, files)
        os.rename(build, target)
    except OSError as e:
        raise ScaffoldError(f"Cannot create plugin at {target}: {e}") from e
    finally:
        shutil.rmtree(staging, ignore_errors=True)

    return target

"""Plugin templates for ``create``.

A template is a list of ``TemplateFile`` values held in memory. It comes
either from a marketplace's ``plugins/_template`` directory or from
``BUNDLED_TEMPLATE`` below.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .errors import ScaffoldError

# Never copied out of a template directory.
IGNORED_NAMES = {".DS_Store", "__pycache__", ".git"}


@dataclass(frozen=True)
class TemplateFile:
    path: PurePosixPath
    content: bytes
    executable: bool = False


BUNDLED_TEMPLATE: dict[str, str] = {
    ".claude-plugin/plugin.json": """\
{
  "name": "{{PLUGIN_NAME}}",
  "version": "0.1.0",
  "description": "{{PLUGIN_DESCRIPTION}}",
  "author": {
    "name": "{{AUTHOR_NAME}}"
  },
  "homepage": "https://github.com/{{GITHUB_USER}}/{{REPO_NAME}}",
  "repository": "https://github.com/{{GITHUB_USER}}/{{REPO_NAME}}",
  "license": "MIT",
  "keywords": []
}
""",
    "README.md": """\
# {{PLUGIN_NAME}}

{{PLUGIN_DESCRIPTION}}

## Installation

```bash
/plugin marketplace add {{GITHUB_USER}}/{{REPO_NAME}}
/plugin install {{PLUGIN_NAME}}@{{REPO_NAME}}
```

## Contents

- `skills/` - skills Claude activates on matching requests
- `commands/` - slash commands
- `hooks/` - hook configuration and scripts

## Local testing

```bash
claude --plugin-dir ./plugins/{{PLUGIN_NAME}}
```
""",
    "skills/example-skill/SKILL.md": """\
---
name: example-skill
description: |
  Example skill for {{PLUGIN_NAME}}. Replace this description with what the
  skill does and the phrases that should activate it.
---

# Example Skill

Describe the steps Claude should follow when this skill is active.
""",
    "commands/example.md": """\
---
description: Example command for {{PLUGIN_NAME}}
---

Describe what this command should do. `$ARGUMENTS` holds the user's input.
""",
    "hooks/hooks.json": """\
{
  "hooks": {
    "PostToolUse": [
      {
        "matcher": "Write|Edit",
        "hooks": [
          {
            "type": "command",
            "command": "${CLAUDE_PLUGIN_ROOT}/scripts/post-edit.sh"
          }
        ]
      }
    ]
  }
}
""",
    "scripts/post-edit.sh": """\
#!/usr/bin/env bash
# Post-edit hook for {{PLUGIN_NAME}}, runs after any Write or Edit operation.

FILE_PATH="$1"

echo "Post-edit hook triggered for: $FILE_PATH"
""",
}


def bundled_template() -> list[TemplateFile]:
    return [
        TemplateFile(
            path=PurePosixPath(rel),
            content=text.encode("utf-8"),
            executable=rel.endswith(".sh"),
        )
        for rel, text in BUNDLED_TEMPLATE.items()
    ]


def read_template_dir(template_dir: Path) -> list[TemplateFile]:
    """Read every file under ``template_dir`` into memory.

    Raises:
        ScaffoldError: Template directory missing or unreadable
    """
    if not template_dir.is_dir():
        raise ScaffoldError(f"Template directory not found at {template_dir}")

    files: list[TemplateFile] = []
    try:
        for dirpath, dirnames, filenames in os.walk(template_dir):
            dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_NAMES)
            for filename in sorted(filenames):
                if filename in IGNORED_NAMES:
                    continue
                source = Path(dirpath) / filename
                files.append(
                    TemplateFile(
                        path=PurePosixPath(source.relative_to(template_dir).as_posix()),
                        content=source.read_bytes(),
                        executable=os.access(source, os.X_OK),
                    )
                )
    except OSError as e:
        raise ScaffoldError(f"Cannot read template {template_dir}: {e}") from None
    return files


def load_template(template_dir: Path | None) -> list[TemplateFile]:
    """Template files from ``template_dir``, or the bundled template when None."""
    if template_dir is None:
        return bundled_template()
    return read_template_dir(template_dir)

"""Tooling for a Claude Code plugin marketplace: create, validate, register and list plugins."""

from __future__ import annotations

__version__ = "0.1.0"

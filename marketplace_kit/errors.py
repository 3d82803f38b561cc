"""Exceptions raised by marketplace operations.

Validation findings are not exceptions; they are collected in a
``ValidationReport``. These are for conditions that abort an operation.
"""

from __future__ import annotations


class MarketplaceError(Exception):
    """Base class for errors that abort a marketplace operation."""

    exit_code = 1


class UsageError(MarketplaceError):
    """Bad arguments: invalid plugin name, unknown plugin, and so on."""


class ConflictError(MarketplaceError):
    """The operation would clobber existing state without permission."""


class RegistryError(MarketplaceError):
    """marketplace.json is missing, unreadable or malformed."""


class ManifestError(MarketplaceError):
    """A plugin's plugin.json is missing, unreadable or malformed."""


class ScaffoldError(MarketplaceError):
    """The plugin template could not be rendered."""

"""Fatal error types – anything raised from here aborts the run."""

from __future__ import annotations


class HarvesterError(Exception):
    """Base class for fatal harvester errors."""


class InputError(HarvesterError):
    """Raised when the posts file is missing or malformed."""


class ArtifactError(HarvesterError):
    """Raised when the artifact cannot be read, decoded, or written."""

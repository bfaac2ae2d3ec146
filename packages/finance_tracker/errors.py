"""Exception types raised across the import pipeline.

Row-level anomalies (missing fields, synthetic test rows, invalid regex
patterns) are never raised; they are logged and skipped where they occur.
"""

from __future__ import annotations


class ImporterConfigurationError(ValueError):
    """An importer cannot be registered (e.g., it has no ``code``)."""


class ImportParseError(ValueError):
    """A file could not be read at the framing level.

    Raised from ``parse_file`` before any row is returned, so a corrupt file
    never partially imports.
    """


class UnknownImporterError(LookupError):
    """An importer code was requested that is not registered."""

    def __init__(self, code: str | None) -> None:
        self.code = code
        super().__init__(f"Importer with code {code} not found")


__all__ = [
    "ImportParseError",
    "ImporterConfigurationError",
    "UnknownImporterError",
]

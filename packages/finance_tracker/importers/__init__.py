"""Bank-specific CSV importers and the registry that resolves them by code."""

from __future__ import annotations

from .aib import AIBImporter
from .base import CsvImporter, TransactionImporter
from .registry import ImporterRegistry
from .revolute import RevoluteImporter


def build_default_registry() -> ImporterRegistry:
    """Registry with every bundled importer; AIB first, so it is the default."""

    return ImporterRegistry([AIBImporter(), RevoluteImporter()])


__all__ = [
    "AIBImporter",
    "CsvImporter",
    "ImporterRegistry",
    "RevoluteImporter",
    "TransactionImporter",
    "build_default_registry",
]

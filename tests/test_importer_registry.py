# ruff: noqa: E402, I001
from __future__ import annotations

import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

from finance_tracker.api import list_importers, resolve_importer  # noqa: E402
from finance_tracker.errors import ImporterConfigurationError, UnknownImporterError  # noqa: E402
from finance_tracker.importers import (  # noqa: E402
    AIBImporter,
    ImporterRegistry,
    RevoluteImporter,
    build_default_registry,
)
from finance_tracker.models import NormalizedTransaction  # noqa: E402


class _ParseOnlyImporter:
    """Implements only the required capability (no can_handle_file)."""

    name = "Parse only"
    code = "parse-only"
    description = "test importer"
    supported_file_types = (".csv",)

    def parse_file(self, data: bytes) -> list[NormalizedTransaction]:
        return []


class _Greedy(AIBImporter):
    code = "greedy"

    def can_handle_file(self, header_text: str, file_name: str) -> bool:
        return True


def test_default_registry_order_and_default() -> None:
    registry = build_default_registry()

    assert [i.code for i in registry.list()] == ["aib-importer", "revolute-importer"]
    assert registry.get_default().code == "aib-importer"
    assert "revolute-importer" in registry
    assert len(registry) == 2


def test_get_unknown_code_returns_none() -> None:
    assert build_default_registry().get("nope") is None


def test_register_without_code_is_rejected() -> None:
    importer = _ParseOnlyImporter()
    importer.code = ""
    with pytest.raises(ImporterConfigurationError):
        ImporterRegistry().register(importer)


def test_reregistering_a_code_replaces_the_importer() -> None:
    registry = ImporterRegistry([AIBImporter()])
    replacement = AIBImporter()
    registry.register(replacement)

    assert len(registry) == 1
    assert registry.get("aib-importer") is replacement


def test_empty_registry_has_no_default() -> None:
    registry = ImporterRegistry()
    assert registry.get_default() is None
    assert registry.auto_detect("anything", "file.csv") is None


def test_auto_detect_is_first_match_in_registration_order() -> None:
    registry = ImporterRegistry([_ParseOnlyImporter(), _Greedy(), RevoluteImporter()])

    # The parse-only importer is skipped; the greedy one shadows Revolute.
    detected = registry.auto_detect("Type,Product,Started Date,Completed Date", "x.csv")
    assert detected.code == "greedy"


def test_auto_detect_by_header_and_name() -> None:
    registry = build_default_registry()

    header = "Type,Product,Started Date,Completed Date,Description,Amount"
    assert registry.auto_detect(header, "statement.csv").code == "revolute-importer"
    assert registry.auto_detect("", "aib-export.csv").code == "aib-importer"
    assert registry.auto_detect("Date,Amount", "bank.csv") is None


def test_resolve_importer_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    registry = build_default_registry()

    assert resolve_importer(registry, "revolute-importer").code == "revolute-importer"
    with pytest.raises(UnknownImporterError):
        resolve_importer(registry, "missing-importer")

    revolute_header = "Type,Product,Started Date,Completed Date"
    assert resolve_importer(registry, header_text=revolute_header).code == "revolute-importer"
    assert resolve_importer(registry, header_text="Date,Amount").code == "aib-importer"

    monkeypatch.setenv("FINANCE_TRACKER_DEFAULT_IMPORTER", "revolute-importer")
    assert resolve_importer(registry, header_text="Date,Amount").code == "revolute-importer"


def test_list_importers_metadata() -> None:
    meta = list_importers(build_default_registry())

    assert meta[0] == {
        "name": "AIB Bank",
        "code": "aib-importer",
        "description": "Imports transactions from Allied Irish Bank CSV exports",
        "supported_file_types": [".csv"],
    }
    assert meta[1]["code"] == "revolute-importer"

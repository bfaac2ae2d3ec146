"""Public operations used by the CLI and the HTTP boundary.

This module glues the pieces together: it resolves an importer for a file,
parses the whole file before touching storage (a corrupt file never imports
partially), then hands the parsed rows to the batch orchestrator. Session
ownership stays with the caller except in :func:`import_file_from_path`,
which opens its own scope.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, NamedTuple

from db.client import session_scope
from sqlalchemy.orm import Session

from .batch import import_transactions
from .errors import UnknownImporterError
from .importers import ImporterRegistry, TransactionImporter, build_default_registry
from .logging_setup import get_logger
from .models import ImportResult

logger = get_logger("finance_tracker.api")

DEFAULT_IMPORTER_CODE = "aib-importer"
_DEFAULT_IMPORTER_ENV = "FINANCE_TRACKER_DEFAULT_IMPORTER"


class FileImportOutcome(NamedTuple):
    importer: TransactionImporter
    parsed: int
    result: ImportResult


def default_importer_code() -> str:
    return os.getenv(_DEFAULT_IMPORTER_ENV) or DEFAULT_IMPORTER_CODE


def list_importers(registry: ImporterRegistry) -> list[dict[str, Any]]:
    """Metadata for each registered importer, in registration order."""

    return [
        {
            "name": importer.name,
            "code": importer.code,
            "description": getattr(importer, "description", ""),
            "supported_file_types": list(importer.supported_file_types),
        }
        for importer in registry.list()
    ]


def read_header_text(data: bytes) -> str:
    """First line of ``data`` as text (lenient decode; used for detection only)."""

    text = data[:4096].decode("utf-8-sig", errors="replace")
    return text.splitlines()[0] if text else ""


def resolve_importer(
    registry: ImporterRegistry,
    code: str | None = None,
    *,
    header_text: str | None = None,
    file_name: str = "",
) -> TransactionImporter:
    """Pick the importer for a file.

    An explicit ``code`` must be registered (:class:`UnknownImporterError`
    otherwise). Without one, auto-detection runs on the header and file name,
    then the configured default code is used, then the registry default.
    """

    if code:
        importer = registry.get(code)
        if importer is None:
            raise UnknownImporterError(code)
        return importer

    if header_text or file_name:
        detected = registry.auto_detect(header_text or "", file_name)
        if detected is not None:
            return detected

    fallback = default_importer_code()
    importer = registry.get(fallback) or registry.get_default()
    if importer is None:
        raise UnknownImporterError(fallback)
    logger.info("No importer detected for %r; using %s", file_name, importer.code)
    return importer


def import_file(
    session: Session,
    registry: ImporterRegistry,
    data: bytes,
    *,
    importer_code: str | None = None,
    file_name: str = "",
    auto_apply_categories: bool = True,
) -> FileImportOutcome:
    """Parse ``data`` with the resolved importer and persist the rows.

    Parsing errors propagate before anything is written. An empty parse
    result writes nothing and reports ``parsed == 0``.
    """

    importer = resolve_importer(
        registry,
        importer_code,
        header_text=read_header_text(data),
        file_name=file_name,
    )
    transactions = importer.parse_file(data)
    if not transactions:
        return FileImportOutcome(importer, 0, ImportResult(added=0, duplicates=0))

    result = import_transactions(
        session, transactions, auto_apply_categories=auto_apply_categories
    )
    return FileImportOutcome(importer, len(transactions), result)


def import_file_from_path(
    path: str | Path,
    *,
    registry: ImporterRegistry | None = None,
    importer_code: str | None = None,
    auto_apply_categories: bool = True,
    database_url: str | None = None,
) -> FileImportOutcome:
    """Read ``path`` and import it in a session of its own (committed on success)."""

    p = Path(path)
    data = p.read_bytes()
    registry = registry if registry is not None else build_default_registry()
    with session_scope(database_url=database_url) as session:
        return import_file(
            session,
            registry,
            data,
            importer_code=importer_code,
            file_name=p.name,
            auto_apply_categories=auto_apply_categories,
        )


__all__ = [
    "DEFAULT_IMPORTER_CODE",
    "FileImportOutcome",
    "default_importer_code",
    "import_file",
    "import_file_from_path",
    "list_importers",
    "read_header_text",
    "resolve_importer",
]

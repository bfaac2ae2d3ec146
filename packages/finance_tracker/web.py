"""FastAPI boundary for importing bank exports over HTTP.

Build the app with :func:`create_app`; the importer registry and database URL
are fixed per app instance and kept on ``app.state``. Uploads are spooled to
``$FINANCE_TRACKER_UPLOAD_DIR`` (the system temp dir by default) and the
spooled file is removed after processing whatever the outcome.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

from db.client import session_scope
from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api import default_importer_code, import_file, list_importers
from .batch import auto_categorize_uncategorized
from .errors import ImportParseError, UnknownImporterError
from .importers import ImporterRegistry, build_default_registry
from .logging_setup import configure_logging, get_logger

logger = get_logger("finance_tracker.web")

_UPLOAD_DIR_ENV = "FINANCE_TRACKER_UPLOAD_DIR"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _spool_upload(upload: UploadFile) -> Path:
    upload_dir = os.getenv(_UPLOAD_DIR_ENV) or None
    if upload_dir:
        Path(upload_dir).mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "").suffix
    fd, name = tempfile.mkstemp(dir=upload_dir, suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as fh:
            while chunk := upload.file.read(1024 * 1024):
                fh.write(chunk)
    except BaseException:
        # A partial spool is removed before the error propagates.
        path.unlink(missing_ok=True)
        raise
    return path


def _parse_flag(raw: str | None) -> bool:
    # Only the literal "false" disables the flag.
    return raw != "false"


def create_app(
    registry: ImporterRegistry | None = None,
    database_url: str | None = None,
) -> FastAPI:
    load_dotenv(override=False)
    configure_logging()

    app = FastAPI(title="finance-tracker")
    app.state.registry = registry if registry is not None else build_default_registry()
    app.state.database_url = database_url

    @app.post("/api/transactions/import", status_code=status.HTTP_201_CREATED, response_model=None)
    def import_transactions_endpoint(
        request: Request,
        file: UploadFile | None = File(None),
        importerCode: str | None = Form(None),  # noqa: N803 - wire name
        autoApplyCategories: str | None = Form(None),  # noqa: N803 - wire name
    ) -> dict[str, Any] | JSONResponse:
        if file is None or not file.filename:
            return _error(status.HTTP_400_BAD_REQUEST, "No file uploaded")

        registry: ImporterRegistry = request.app.state.registry
        code = importerCode or default_importer_code()
        if registry.get(code) is None:
            return _error(status.HTTP_400_BAD_REQUEST, f"Importer with code {code} not found")

        spooled: Path | None = None
        try:
            spooled = _spool_upload(file)
            data = spooled.read_bytes()
            with session_scope(database_url=request.app.state.database_url) as session:
                outcome = import_file(
                    session,
                    registry,
                    data,
                    importer_code=code,
                    file_name=file.filename,
                    auto_apply_categories=_parse_flag(autoApplyCategories),
                )
        except UnknownImporterError as exc:
            return _error(status.HTTP_400_BAD_REQUEST, str(exc))
        except (ImportParseError, SQLAlchemyError) as exc:
            logger.exception("Import of %r failed", file.filename)
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, f"Failed to import file: {exc}")
        finally:
            if spooled is not None:
                spooled.unlink(missing_ok=True)

        if outcome.parsed == 0:
            return _error(status.HTTP_400_BAD_REQUEST, "No transactions found in the file")

        result = outcome.result
        return {
            "success": True,
            "message": (
                f"Successfully imported {result.added} transactions. "
                f"{result.duplicates} duplicates were skipped."
            ),
            "added": result.added,
            "duplicates": result.duplicates,
            "importer": outcome.importer.code,
        }

    @app.get("/api/transactions/importers")
    def list_importers_endpoint(request: Request) -> list[dict[str, Any]]:
        return list_importers(request.app.state.registry)

    @app.post("/api/transactions/auto-categorize", response_model=None)
    def auto_categorize_endpoint(request: Request) -> dict[str, Any] | JSONResponse:
        try:
            with session_scope(database_url=request.app.state.database_url) as session:
                result = auto_categorize_uncategorized(session)
        except SQLAlchemyError as exc:
            logger.exception("Bulk auto-categorization failed")
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))
        return {
            "success": True,
            "message": f"Auto-categorized {result.categorized} of {result.total} transactions",
            "categorized": result.categorized,
            "total": result.total,
        }

    return app


__all__ = ["create_app"]

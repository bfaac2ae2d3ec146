"""Code-keyed registry of transaction importers.

The registry is an ordinary object built by the entry point (see
:func:`finance_tracker.importers.build_default_registry`) and handed to the
operations that need it; there is no process-wide instance. Registration
order is preserved and is the order auto-detection consults importers in.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..errors import ImporterConfigurationError
from ..logging_setup import get_logger
from .base import TransactionImporter

logger = get_logger("finance_tracker.importers.registry")


class ImporterRegistry:
    def __init__(self, importers: Iterable[TransactionImporter] = ()) -> None:
        self._importers: dict[str, TransactionImporter] = {}
        for importer in importers:
            self.register(importer)

    def register(self, importer: TransactionImporter) -> None:
        """Add ``importer`` under its code; a later registration replaces an earlier one."""

        code = getattr(importer, "code", None)
        if not code:
            raise ImporterConfigurationError(
                f"importer {importer!r} has no code and cannot be registered"
            )
        if code in self._importers:
            logger.warning("Importer with code %s already registered; replacing it", code)
        self._importers[code] = importer
        logger.info("Registered importer: %s (%s)", importer.name, code)

    def get(self, code: str) -> TransactionImporter | None:
        return self._importers.get(code)

    def list(self) -> list[TransactionImporter]:
        return list(self._importers.values())

    def auto_detect(self, header_text: str, file_name: str = "") -> TransactionImporter | None:
        """Return the first registered importer that claims the file.

        Importers without a callable ``can_handle_file`` are never selected.
        ``None`` means no importer recognized the header or the file name.
        """

        for importer in self._importers.values():
            check = getattr(importer, "can_handle_file", None)
            if not callable(check):
                continue
            if check(header_text, file_name):
                logger.debug("Auto-detected importer %s for %r", importer.code, file_name)
                return importer
        return None

    def get_default(self) -> TransactionImporter | None:
        """Return the first registered importer, or ``None`` when empty."""

        return next(iter(self._importers.values()), None)

    def __len__(self) -> int:
        return len(self._importers)

    def __contains__(self, code: object) -> bool:
        return code in self._importers


__all__ = ["ImporterRegistry"]

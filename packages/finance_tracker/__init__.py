"""Public interface for the ``finance_tracker`` package.

Symbol re-exports only. The HTTP app factory lives in
``finance_tracker.web`` and the console interface in ``finance_tracker.cli``;
neither is imported here so the library stays usable without FastAPI or
Typer at import time.
"""

from .api import (
    import_file,
    import_file_from_path,
    list_importers,
    resolve_importer,
)
from .batch import auto_categorize_uncategorized, import_transactions
from .categories import assign_category, initialize_database
from .dates import normalize_date
from .duplicates import find_duplicate, is_duplicate
from .errors import ImporterConfigurationError, ImportParseError, UnknownImporterError
from .importers import (
    AIBImporter,
    ImporterRegistry,
    RevoluteImporter,
    TransactionImporter,
    build_default_registry,
)
from .models import AutoCategorizeResult, ImportResult, NormalizedTransaction, PatternSpec
from .patterns import apply_auto_category, create_pattern, list_patterns, select_best_pattern

__all__ = [
    # Operations
    "apply_auto_category",
    "assign_category",
    "auto_categorize_uncategorized",
    "create_pattern",
    "find_duplicate",
    "import_file",
    "import_file_from_path",
    "import_transactions",
    "initialize_database",
    "is_duplicate",
    "list_importers",
    "list_patterns",
    "normalize_date",
    "resolve_importer",
    "select_best_pattern",
    # Importers
    "AIBImporter",
    "ImporterRegistry",
    "RevoluteImporter",
    "TransactionImporter",
    "build_default_registry",
    # Models / errors
    "AutoCategorizeResult",
    "ImportParseError",
    "ImportResult",
    "ImporterConfigurationError",
    "NormalizedTransaction",
    "PatternSpec",
    "UnknownImporterError",
]

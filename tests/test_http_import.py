# ruff: noqa: E402, I001
from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

from db.client import session_scope  # noqa: E402
from db.models.finance import Transaction, TransactionCategory  # noqa: E402

from finance_tracker.web import _spool_upload, create_app  # noqa: E402
from tests.helpers.db import add_pattern  # noqa: E402

DATA = Path(__file__).resolve().parent / "data"


@pytest.fixture
def client(database_url: str) -> TestClient:
    return TestClient(create_app(database_url=database_url))


def _upload(client: TestClient, name: str, content: bytes, **form: str):
    return client.post(
        "/api/transactions/import",
        files={"file": (name, content, "text/csv")},
        data=form,
    )


def _uploads_left() -> list[Path]:
    import os

    return list(Path(os.environ["FINANCE_TRACKER_UPLOAD_DIR"]).iterdir())


def test_import_defaults_to_aib_and_reports_counts(client: TestClient, database_url: str) -> None:
    with session_scope(database_url=database_url) as s:
        add_pattern(s, "GROCERY", "Grocery")

    content = (DATA / "aib_sample.csv").read_bytes()
    resp = _upload(client, "export.csv", content)

    assert resp.status_code == 201
    body = resp.json()
    assert body == {
        "success": True,
        "message": "Successfully imported 3 transactions. 0 duplicates were skipped.",
        "added": 3,
        "duplicates": 0,
        "importer": "aib-importer",
    }
    with session_scope(database_url=database_url) as s:
        links = s.execute(select(TransactionCategory)).scalars().all()
        assert len(links) == 1

    again = _upload(client, "export.csv", content).json()
    assert again["added"] == 0
    assert again["duplicates"] == 3
    assert _uploads_left() == []


def test_explicit_importer_and_disabled_auto_apply(client: TestClient, database_url: str) -> None:
    with session_scope(database_url=database_url) as s:
        add_pattern(s, "TESCO", "Grocery")

    resp = _upload(
        client,
        "statement.csv",
        (DATA / "revolute_sample.csv").read_bytes(),
        importerCode="revolute-importer",
        autoApplyCategories="false",
    )

    assert resp.status_code == 201
    assert resp.json()["added"] == 2
    with session_scope(database_url=database_url) as s:
        assert s.execute(select(TransactionCategory)).scalars().all() == []
        accounts = set(s.execute(select(Transaction.account_number)).scalars())
        assert accounts == {"Current"}


def test_missing_file_is_400(client: TestClient) -> None:
    resp = client.post("/api/transactions/import", data={"importerCode": "aib-importer"})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "No file uploaded"}


def test_unknown_importer_is_400(client: TestClient) -> None:
    resp = _upload(client, "x.csv", b"a,b\n1,2\n", importerCode="chase-importer")

    assert resp.status_code == 400
    assert resp.json()["error"] == "Importer with code chase-importer not found"
    assert _uploads_left() == []


def test_empty_parse_result_is_400(client: TestClient) -> None:
    header_only = b"Posted Account,Posted Transactions Date,Description1\n"
    resp = _upload(client, "empty.csv", header_only)

    assert resp.status_code == 400
    assert resp.json()["error"] == "No transactions found in the file"
    assert _uploads_left() == []


def test_malformed_file_is_500_and_upload_removed(client: TestClient, database_url: str) -> None:
    broken = b'Posted Account,Posted Transactions Date,Description1\n1,01/01/2024,"A"B\n'
    resp = _upload(client, "broken.csv", broken)

    assert resp.status_code == 500
    assert resp.json()["success"] is False
    assert _uploads_left() == []
    with session_scope(database_url=database_url) as s:
        assert s.execute(select(Transaction)).scalars().all() == []


def test_list_importers_endpoint(client: TestClient) -> None:
    resp = client.get("/api/transactions/importers")

    assert resp.status_code == 200
    assert [i["code"] for i in resp.json()] == ["aib-importer", "revolute-importer"]


def test_auto_categorize_endpoint(client: TestClient, database_url: str) -> None:
    _upload(client, "export.csv", (DATA / "aib_sample.csv").read_bytes())
    with session_scope(database_url=database_url) as s:
        add_pattern(s, "SALARY", "Earnings")

    resp = client.post("/api/transactions/auto-categorize")

    assert resp.status_code == 200
    body = resp.json()
    assert body["categorized"] == 1
    assert body["total"] == 3


@pytest.mark.parametrize("flag", ["FALSE", " false ", "0", "no"])
def test_only_lowercase_false_disables_auto_apply(
    client: TestClient, database_url: str, flag: str
) -> None:
    with session_scope(database_url=database_url) as s:
        add_pattern(s, "GROCERY", "Grocery")

    resp = _upload(
        client,
        "export.csv",
        (DATA / "aib_sample.csv").read_bytes(),
        autoApplyCategories=flag,
    )

    assert resp.status_code == 201
    with session_scope(database_url=database_url) as s:
        assert len(s.execute(select(TransactionCategory)).scalars().all()) == 1


class _FailingReader:
    def __init__(self) -> None:
        self.calls = 0

    def read(self, size: int = -1) -> bytes:
        self.calls += 1
        if self.calls > 1:
            raise OSError("connection reset")
        return b"Posted Account,Posted Transactions Date,Description1\n"


def test_partial_spool_is_removed_when_reading_fails() -> None:
    upload = SimpleNamespace(filename="export.csv", file=_FailingReader())

    with pytest.raises(OSError, match="connection reset"):
        _spool_upload(upload)

    assert _uploads_left() == []

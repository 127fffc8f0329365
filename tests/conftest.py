"""
Shared test fixtures.

The Supabase client is replaced by an in-memory mock that applies
filters, keeps inserted/updated/deleted rows, and fakes object storage.
"""

import os
import sys
from pathlib import Path

# Settings require Supabase credentials at import time
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

# Add project root to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import itertools
import threading
import pytest
from contextlib import ExitStack
from unittest.mock import patch
from datetime import datetime
from typing import Generator

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data=None, count: int = None):
        self.data = data if data is not None else []
        self.count = count


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, table: "MockSupabaseTable", operation: str, payload=None):
        self._table = table
        self._operation = operation
        self._payload = payload
        self._filters = []
        self._order = None
        self._range = None
        self._limit = None
        self._is_single = False

    def select(self, *args, **kwargs):
        return self

    def eq(self, column, value):
        self._filters.append(("eq", column, value))
        return self

    def neq(self, column, value):
        self._filters.append(("neq", column, value))
        return self

    def in_(self, column, values):
        self._filters.append(("in", column, list(values)))
        return self

    def single(self):
        self._is_single = True
        return self

    def order(self, column, desc: bool = False, **kwargs):
        self._order = (column, desc)
        return self

    def range(self, start, end):
        self._range = (start, end)
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row: dict) -> bool:
        for op, column, value in self._filters:
            if op == "eq" and row.get(column) != value:
                return False
            if op == "neq" and row.get(column) == value:
                return False
            if op == "in" and row.get(column) not in value:
                return False
        return True

    def execute(self) -> MockSupabaseResponse:
        client = self._table.client
        client.calls.append({
            "table": self._table.name,
            "operation": self._operation,
            "payload": self._payload,
            "filters": list(self._filters),
        })

        error = client.errors.get((self._table.name, self._operation))
        if error is not None:
            raise error

        with client.lock:
            handler = getattr(self, f"_execute_{self._operation}")
            return handler()

    def _execute_select(self) -> MockSupabaseResponse:
        rows = [dict(r) for r in self._table.rows if self._matches(r)]
        total = self._table.count if self._table.count is not None else len(rows)

        if self._order:
            column, desc = self._order
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        if self._range:
            start, end = self._range
            rows = rows[start:end + 1]
        if self._limit is not None:
            rows = rows[:self._limit]

        if self._is_single:
            return MockSupabaseResponse(data=rows[0] if rows else None, count=1 if rows else 0)
        return MockSupabaseResponse(data=rows, count=total)

    def _execute_insert(self) -> MockSupabaseResponse:
        items = self._payload if isinstance(self._payload, list) else [self._payload]
        now = datetime.utcnow().isoformat() + "Z"
        created = []
        for item in items:
            row = dict(item)
            row.setdefault("id", self._table.client.next_id(self._table.name))
            row.setdefault("created_at", now)
            row.setdefault("updated_at", now)
            self._table.rows.append(row)
            created.append(dict(row))
        return MockSupabaseResponse(data=created, count=len(created))

    def _execute_update(self) -> MockSupabaseResponse:
        now = datetime.utcnow().isoformat() + "Z"
        updated = []
        for row in self._table.rows:
            if self._matches(row):
                row.update(self._payload)
                row["updated_at"] = now
                updated.append(dict(row))
        return MockSupabaseResponse(data=updated, count=len(updated))

    def _execute_delete(self) -> MockSupabaseResponse:
        deleted = [dict(r) for r in self._table.rows if self._matches(r)]
        self._table.rows[:] = [r for r in self._table.rows if not self._matches(r)]
        return MockSupabaseResponse(data=deleted, count=len(deleted))


class MockSupabaseTable:
    """Mock Supabase table backed by the client's row store."""

    def __init__(self, client: "MockSupabaseClient", name: str):
        self.client = client
        self.name = name
        self.rows = client.tables.setdefault(name, [])
        self.count = client.counts.get(name)

    def select(self, *args, **kwargs):
        return MockSupabaseQuery(self, "select")

    def insert(self, data):
        return MockSupabaseQuery(self, "insert", data)

    def update(self, data):
        return MockSupabaseQuery(self, "update", data)

    def delete(self):
        return MockSupabaseQuery(self, "delete")


class MockStorageBucket:
    """Mock storage bucket."""

    def __init__(self, storage: "MockStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path, file, file_options=None):
        with self.storage.lock:
            self.storage.call_count += 1
            if self.storage.call_count in self.storage.fail_on_calls:
                raise RuntimeError(f"upload rejected: {path}")
            self.storage.uploads.append({
                "bucket": self.name,
                "path": path,
                "data": file,
                "options": file_options or {},
            })
        return {"path": path}

    def get_public_url(self, path):
        return f"https://test-project.supabase.co/storage/v1/object/public/{self.name}/{path}"


class MockStorage:
    """Mock Supabase storage. fail_on_calls holds 1-based upload numbers to reject."""

    def __init__(self):
        self.uploads = []
        self.fail_on_calls = set()
        self.call_count = 0
        self.lock = threading.Lock()

    def from_(self, bucket: str) -> MockStorageBucket:
        return MockStorageBucket(self, bucket)


class MockSupabaseClient:
    """Mock Supabase client."""

    def __init__(self):
        self.tables = {}
        self.counts = {}
        self.errors = {}
        self.calls = []
        self.lock = threading.RLock()
        self.storage = MockStorage()
        self._ids = itertools.count(1)

    def set_table_data(self, table_name: str, data: list, count: int = None):
        """Configure mock data for a table."""
        self.tables[table_name] = [dict(row) for row in data]
        self.counts[table_name] = count

    def set_table_error(self, table_name: str, operation: str, error: Exception):
        """Make every <operation> on <table_name> raise error."""
        self.errors[(table_name, operation)] = error

    def rows(self, table_name: str) -> list:
        return self.tables.get(table_name, [])

    def calls_for(self, table_name: str, operation: str) -> list:
        return [
            c for c in self.calls
            if c["table"] == table_name and c["operation"] == operation
        ]

    def next_id(self, table_name: str) -> str:
        return f"{table_name}-new-{next(self._ids)}"

    def table(self, name: str) -> MockSupabaseTable:
        """Get mock table."""
        return MockSupabaseTable(self, name)


# ===================
# FIXTURES
# ===================

PATCHED_MODULES = [
    "config.database",
    "services.product_service",
    "services.category_service",
    "services.variant_service",
    "services.image_service",
    "services.storage_service",
]

SERVICE_SINGLETONS = [
    ("services.product_service", "_product_service"),
    ("services.category_service", "_category_service"),
    ("services.variant_service", "_variant_service"),
    ("services.image_service", "_image_service"),
    ("services.product_form_service", "_product_form_service"),
]


@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("products", [
                {"id": "1", "slug": "classic-tee", ...}
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase, monkeypatch) -> Generator:
    """
    Patch the database client with mock.

    Usage:
        def test_something(mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            # Now any code using get_supabase_client() gets the mock
    """
    import importlib

    for module_name, attr in SERVICE_SINGLETONS:
        monkeypatch.setattr(importlib.import_module(module_name), attr, None)

    with ExitStack() as stack:
        for module_name in PATCHED_MODULES:
            stack.enter_context(
                patch(f"{module_name}.get_supabase_client", return_value=mock_supabase)
            )
        stack.enter_context(
            patch("services.product_service.get_admin_client", return_value=None)
        )
        yield mock_supabase


@pytest.fixture
def sample_product_data() -> dict:
    """Sample product row (with embedded relations) for testing."""
    return {
        "id": "prod-1",
        "name": "Classic Tee",
        "slug": "classic-tee",
        "description": "Heavyweight cotton tee",
        "price": 29.0,
        "compare_at_price": None,
        "category_id": "cat-1",
        "product_type": "clothes",
        "brand": "Acme",
        "material": "Cotton",
        "is_featured": False,
        "is_active": True,
        "created_at": "2025-12-05T10:00:00Z",
        "updated_at": "2025-12-05T10:00:00Z",
        "categories": None,
        "product_variants": [
            {
                "id": "var-1",
                "product_id": "prod-1",
                "color": "Black",
                "color_code": "#000000",
                "size": "M",
                "stock": 5,
                "sku": "CLASSIC-TEE-BLACK-M",
                "is_available": True,
            },
            {
                "id": "var-2",
                "product_id": "prod-1",
                "color": "Black",
                "color_code": "#000000",
                "size": "L",
                "stock": 0,
                "sku": "CLASSIC-TEE-BLACK-L",
                "is_available": True,
            },
        ],
        "product_images": [],
    }


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_mock_db(mock_db):
    """
    Create FastAPI test client with mocked database.

    Usage:
        def test_endpoint(test_client_with_mock_db, mock_supabase):
            mock_supabase.set_table_data("products", [...])
            response = test_client_with_mock_db.get("/api/products")
    """
    from fastapi.testclient import TestClient
    from main import app

    yield TestClient(app)

"""
Unit tests for schema setup helpers.
"""
import pytest
from sqlalchemy import inspect

from servicehub.lib.db import drop_db, engine, init_db


@pytest.mark.unit
def test_init_and_drop_db():
    init_db()
    try:
        tables = set(inspect(engine).get_table_names())
        assert {"users", "businesses", "business_employees", "services", "bookings", "favorites"} <= tables
    finally:
        drop_db()

    assert inspect(engine).get_table_names() == []

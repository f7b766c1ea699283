# tests/conftest.py
"""
Shared fakes: a MagicMock DB session whose query() returns canned rows per
model, and a minimal signed-in session.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest


class FakeQuery:
    """Chainable stand-in for a SQLAlchemy Query returning fixed rows."""

    def __init__(self, rows=None, count=None):
        self.rows = list(rows or [])
        self._count = count

    def filter(self, *args, **kwargs):
        return self

    filter_by = order_by = group_by = join = limit = offset = filter

    def all(self):
        return list(self.rows)

    def first(self):
        return self.rows[0] if self.rows else None

    def count(self):
        return self._count if self._count is not None else len(self.rows)


def _model_of(entity):
    # Column attributes (Vehicle.branch_id) resolve to their model
    return getattr(entity, "class_", entity)


def build_db(rows_by_model=None):
    """
    rows_by_model: {Model: [rows] | FakeQuery}. Models not listed return
    no rows. Each query() call gets the same FakeQuery for that model.
    """
    rows_by_model = rows_by_model or {}
    queries = {
        model: value if isinstance(value, FakeQuery) else FakeQuery(value)
        for model, value in rows_by_model.items()
    }
    db = MagicMock()

    def query(*entities):
        return queries.get(_model_of(entities[0]), FakeQuery())

    db.query.side_effect = query
    return db


def build_session(role="manager", branch_id="B1", user_id="U1", access_token="token-abc"):
    return SimpleNamespace(
        role=role,
        branch_id=branch_id,
        user_id=user_id,
        access_token=access_token,
        is_authenticated=True,
    )


@pytest.fixture
def make_db():
    return build_db


@pytest.fixture
def make_session():
    return build_session

from __future__ import annotations

import flask
import pytest

import db

from export_samples import FakeConn, InMemoryStore


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def fake_conn(monkeypatch):
    conn = FakeConn()
    monkeypatch.setattr(db, "get_pg_conn", lambda: conn)
    return conn


@pytest.fixture
def app():
    return flask.Flask("tests")

"""The storage layer stays importable when the web stack is not installed."""

from __future__ import annotations

import importlib
import sys

import pytest


@pytest.fixture()
def without_fastapi(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in [m for m in sys.modules if m == "pos_api" or m.startswith("pos_api.")]:
        monkeypatch.delitem(sys.modules, name)
    monkeypatch.setitem(sys.modules, "fastapi", None)


def test_database_and_settings_import_without_fastapi(without_fastapi: None) -> None:
    package = importlib.import_module("pos_api")
    database = importlib.import_module("pos_api.database")

    assert package.Database is database.Database
    assert callable(package.load_settings)
    assert "pos_api.service" not in sys.modules


def test_create_app_needs_fastapi_only_when_called(without_fastapi: None) -> None:
    package = importlib.import_module("pos_api")
    with pytest.raises(ImportError):
        package.create_app()

# tests/conftest.py
from __future__ import annotations

import sqlite3

import pytest
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

from app.core.settings import DEFAULT_RESET_COLUMNS, DEFAULT_RESET_TABLE, DEFAULT_TRUNCATE_TABLES
from app.db.session import get_engine
from app.maintenance.plan import MaintenancePlan

SCHEMA = [
    "CREATE TABLE tbKardex (id INTEGER PRIMARY KEY AUTOINCREMENT, nCant NUMERIC)",
    "CREATE TABLE tbOrden (id INTEGER PRIMARY KEY AUTOINCREMENT, cDesc TEXT)",
    "CREATE TABLE tbDespUrea (id INTEGER PRIMARY KEY AUTOINCREMENT, nCant NUMERIC)",
    """CREATE TABLE tbInvUrea (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        cProd TEXT,
        nExiMir NUMERIC, nExiSis NUMERIC, nUltCos NUMERIC, nPreProm NUMERIC
    )""",
]

SEED = [
    "INSERT INTO tbKardex (nCant) VALUES (10), (20), (30)",
    "INSERT INTO tbOrden (cDesc) VALUES ('A'), ('B')",
    "INSERT INTO tbDespUrea (nCant) VALUES (1), (2), (3), (4)",
    "INSERT INTO tbInvUrea (cProd, nExiMir, nExiSis, nUltCos, nPreProm) VALUES "
    "('UREA-46', 150, 148, 12.5, 11.75), ('UREA-GR', 80, 79, 13, 12.1)",
]


@pytest.fixture
def engine(tmp_path) -> Engine:
    """
    BD SQLite en archivo (una por prueba) con las 3 tablas a truncar y el inventario.
    En archivo (no :memory:) para que el pool reparta conexiones reales.
    """
    eng = create_engine(f"sqlite:///{tmp_path / 'urea.db'}")
    with eng.begin() as conn:
        for stmt in SCHEMA + SEED:
            conn.execute(text(stmt))
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def unreachable_engine(tmp_path) -> Engine:
    # directorio inexistente: sqlite no puede abrir el archivo → falla el connect
    eng = create_engine(f"sqlite:///{tmp_path / 'no-existe' / 'urea.db'}")
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def plan() -> MaintenancePlan:
    return MaintenancePlan.build(DEFAULT_TRUNCATE_TABLES, DEFAULT_RESET_TABLE, DEFAULT_RESET_COLUMNS)


def _snapshot(engine: Engine) -> dict:
    """Conteo de filas de cada tabla + valores de inventario (desde una conexión nueva)."""
    with engine.connect() as conn:
        counts = {
            t: conn.execute(text(f"SELECT COUNT(*) FROM {t}")).scalar_one()
            for t in DEFAULT_TRUNCATE_TABLES + [DEFAULT_RESET_TABLE]
        }
        inv = [
            tuple(r)
            for r in conn.execute(
                text("SELECT id, nExiMir, nExiSis, nUltCos, nPreProm FROM tbInvUrea ORDER BY id")
            )
        ]
    return {"counts": counts, "inventory": inv}


@pytest.fixture
def snapshot():
    return _snapshot


class StatementTrap:
    """Hace fallar la primera sentencia SQL que contenga `needle` y registra lo ejecutado."""

    def __init__(self, engine: Engine, needle: str | None = None, message: str = "database table is locked"):
        self.engine = engine
        self.needle = needle
        self.message = message
        self.seen: list[str] = []
        event.listen(engine, "before_cursor_execute", self._before)

    def _before(self, conn, cursor, statement, parameters, context, executemany):
        if self.needle and self.needle in statement:
            raise sqlite3.OperationalError(self.message)
        self.seen.append(statement)

    def ran(self, needle: str) -> bool:
        return any(needle in s for s in self.seen)

    def remove(self) -> None:
        if not event.contains(self.engine, "before_cursor_execute", self._before):
            return
        event.remove(self.engine, "before_cursor_execute", self._before)


@pytest.fixture
def trap(engine):
    traps: list[StatementTrap] = []

    def _make(needle: str | None = None, message: str = "database table is locked") -> StatementTrap:
        t = StatementTrap(engine, needle, message)
        traps.append(t)
        return t

    try:
        yield _make
    finally:
        for t in traps:
            t.remove()


@pytest.fixture
def client(engine):
    from fastapi.testclient import TestClient
    from app.main import app

    app.dependency_overrides[get_engine] = lambda: engine
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_engine, None)

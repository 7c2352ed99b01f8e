# scripts/db_reset_truncate.py
"""
Ejecuta la misma limpieza que POST /clean_database, desde la terminal:
- TRUNCATE de las tablas configuradas (en orden)
- UPDATE de las columnas de inventario a su valor inicial
- todo en UNA transacción

Uso:
  python -m scripts.db_reset_truncate
"""
from __future__ import annotations

import sys

from app.core.logging import configure_logging
from app.core.settings import settings
from app.db.session import build_engine
from app.maintenance.handler import perform_maintenance
from app.maintenance.plan import MaintenancePlan


def run(engine=None, plan: MaintenancePlan | None = None) -> int:
    owns_engine = engine is None
    engine = engine or build_engine(settings)
    plan = plan or MaintenancePlan.from_settings(settings)
    try:
        result = perform_maintenance(engine, plan)
    finally:
        if owns_engine:
            engine.dispose()

    if result.ok:
        print(f"[OK] {result.message} ({', '.join(result.executed)})")
        return 0
    where = f" [{result.statement}]" if result.statement else ""
    print(f"[ERROR] {result.kind.value}{where}: {result.message}", file=sys.stderr)
    for extra in result.secondary:
        print(f"[WARN] {extra.kind.value}: {extra.detail}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    configure_logging(settings.LOG_LEVEL)
    sys.exit(run())

# scripts/db_check.py
from __future__ import annotations

from sqlalchemy import text

from app.core.settings import settings
from app.db.session import build_engine


def check(engine=None) -> dict:
    engine = engine or build_engine(settings)
    with engine.connect() as conn:
        one = conn.execute(text("SELECT 1")).scalar_one()
    return {
        "dialect": engine.dialect.name,
        "database": engine.url.database,
        "select_1": one,
    }


if __name__ == "__main__":
    info = check()
    print("OK DB:", info["dialect"])
    print("Current DB:", info["database"])

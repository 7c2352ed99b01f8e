# tests/test_scripts.py
from scripts.db_check import check
from scripts.db_reset_truncate import run


def test_reset_script_ok(engine, plan, snapshot, capsys):
    assert run(engine, plan) == 0
    out = capsys.readouterr().out
    assert out.startswith("[OK] Tablas limpiadas exitosamente.")
    assert "truncate:tbOrden" in out
    assert snapshot(engine)["counts"]["tbDespUrea"] == 0


def test_reset_script_reports_error(unreachable_engine, plan, capsys):
    assert run(unreachable_engine, plan) == 1
    err = capsys.readouterr().err
    assert err.startswith("[ERROR] connect:")


def test_db_check(engine):
    info = check(engine)
    assert info["dialect"] == "sqlite"
    assert info["select_1"] == 1
    assert info["database"].endswith("urea.db")

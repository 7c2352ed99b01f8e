# app/maintenance/plan.py
# ⟶ Descriptor fijo del mantenimiento: tablas a truncar (en orden) + update de columnas
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy import bindparam, column, literal, table, text, update
from sqlalchemy.engine import Dialect
from sqlalchemy.sql import Executable


@dataclass(frozen=True)
class ColumnReset:
    """UPDATE <table> SET col = valor, ... sin WHERE (aplica a todas las filas)."""
    table: str
    values: Mapping[str, Any]

    @property
    def label(self) -> str:
        return f"update:{self.table}"

    def clause(self) -> Executable:
        t = table(self.table, *[column(c) for c in self.values])
        return update(t).values({t.c[c]: literal(v) for c, v in self.values.items()})


@dataclass(frozen=True)
class Statement:
    label: str
    clause: Executable
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MaintenancePlan:
    truncate_tables: Tuple[str, ...]
    column_reset: ColumnReset

    def __post_init__(self) -> None:
        if any(not (t or "").strip() for t in self.truncate_tables):
            raise ValueError("Empty table name in truncate list")
        if len(set(self.truncate_tables)) != len(self.truncate_tables):
            raise ValueError("Duplicate table in truncate list")
        if not (self.column_reset.table or "").strip():
            raise ValueError("Column reset needs a table")
        if not self.column_reset.values:
            raise ValueError("Column reset needs at least one column")
        if any(not (c or "").strip() for c in self.column_reset.values):
            raise ValueError("Empty column name in column reset")

    @classmethod
    def build(
        cls,
        truncate_tables: Sequence[str],
        reset_table: str,
        reset_columns: Mapping[str, Any],
    ) -> "MaintenancePlan":
        return cls(
            truncate_tables=tuple(truncate_tables),
            column_reset=ColumnReset(table=reset_table, values=dict(reset_columns)),
        )

    @classmethod
    def from_settings(cls, s) -> "MaintenancePlan":
        return cls.build(
            s.MAINTENANCE_TRUNCATE_TABLES,
            s.MAINTENANCE_RESET_TABLE,
            s.MAINTENANCE_RESET_COLUMNS,
        )

    @property
    def labels(self) -> List[str]:
        return [f"truncate:{t}" for t in self.truncate_tables] + [self.column_reset.label]

    def statements(self, dialect: Dialect, *, sqlite_sequence: bool = False) -> List[Statement]:
        """
        Lote ordenado para el dialecto dado. SQLite no tiene TRUNCATE: se
        emula con DELETE + reinicio del contador AUTOINCREMENT (si existe
        sqlite_sequence).
        """
        quote = dialect.identifier_preparer.quote
        out: List[Statement] = []
        for name in self.truncate_tables:
            label = f"truncate:{name}"
            if dialect.name == "sqlite":
                out.append(Statement(label, text(f"DELETE FROM {quote(name)}")))
                if sqlite_sequence:
                    out.append(
                        Statement(
                            label,
                            text("DELETE FROM sqlite_sequence WHERE name = :name").bindparams(
                                bindparam("name")
                            ),
                            {"name": name},
                        )
                    )
            elif dialect.name == "postgresql":
                out.append(Statement(label, text(f"TRUNCATE TABLE {quote(name)} RESTART IDENTITY")))
            else:
                # SQL Server: TRUNCATE reinicia IDENTITY y es transaccional
                out.append(Statement(label, text(f"TRUNCATE TABLE {quote(name)}")))

        out.append(Statement(self.column_reset.label, self.column_reset.clause()))
        return out

    def describe(self, dialect: Optional[Dialect] = None) -> List[str]:
        """SQL legible (para la página y los logs)."""
        from sqlalchemy.dialects import mssql

        d = dialect or mssql.dialect()
        return [str(s.clause.compile(dialect=d, compile_kwargs={"literal_binds": True})) for s in self.statements(d)]

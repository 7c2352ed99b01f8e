# app/maintenance/handler.py
# ⟶ Limpieza transaccional: conexión → BEGIN → TRUNCATE (en orden) → UPDATE → COMMIT
#   Cualquier fallo → ROLLBACK. Siempre → liberar la conexión.
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine, RootTransaction
from sqlalchemy.exc import DBAPIError

from app.maintenance.plan import MaintenancePlan, Statement

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Tablas limpiadas exitosamente."
FAILURE_PREFIX = "Error en la operación de base de datos"


class MaintenanceState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    TRANSACTING = "transacting"
    COMMITTING = "committing"
    DONE_OK = "done_ok"
    ROLLING_BACK = "rolling_back"
    DONE_FAIL = "done_fail"
    RELEASING = "releasing"
    TERMINAL = "terminal"


class FailureKind(str, Enum):
    CONNECT = "connect"
    TRANSACTION_START = "transaction_start"
    STATEMENT = "statement"
    COMMIT = "commit"
    # secundarios: se registran pero no cambian la clasificación principal
    ROLLBACK = "rollback"
    RELEASE = "release"


@dataclass
class Failure:
    kind: FailureKind
    detail: str
    statement: Optional[str] = None


@dataclass
class MaintenanceResult:
    ok: bool
    message: str
    failure: Optional[Failure] = None
    secondary: List[Failure] = field(default_factory=list)
    history: List[MaintenanceState] = field(default_factory=list)
    executed: List[str] = field(default_factory=list)

    @property
    def kind(self) -> Optional[FailureKind]:
        return self.failure.kind if self.failure else None

    @property
    def statement(self) -> Optional[str]:
        return self.failure.statement if self.failure else None

    @property
    def detail(self) -> Optional[str]:
        return self.failure.detail if self.failure else None


def driver_message(exc: BaseException) -> str:
    """Mensaje tal cual lo reporta el driver (sin el envoltorio de SQLAlchemy)."""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


class MaintenanceRun:
    """
    Una invocación del mantenimiento. Dueña exclusiva de su conexión.

    IDLE → CONNECTING → TRANSACTING → {COMMITTING → DONE_OK} | {ROLLING_BACK → DONE_FAIL}
         → RELEASING → TERMINAL
    Si falla CONNECTING se pasa directo a TERMINAL.
    """

    def __init__(self, engine: Engine, plan: MaintenancePlan):
        self.engine = engine
        self.plan = plan
        self.state = MaintenanceState.IDLE
        self.history: List[MaintenanceState] = [self.state]
        self.executed: List[str] = []
        self.failure: Optional[Failure] = None
        self.secondary: List[Failure] = []
        self._conn: Optional[Connection] = None
        self._trans: Optional[RootTransaction] = None
        self._commit_attempted = False

    def _enter(self, state: MaintenanceState) -> None:
        self.state = state
        self.history.append(state)

    def _fail(self, kind: FailureKind, exc: BaseException, statement: Optional[str] = None) -> None:
        self.failure = Failure(kind=kind, detail=driver_message(exc), statement=statement)
        logger.error("Fallo %s%s: %s", kind.value, f" en {statement}" if statement else "", self.failure.detail)

    # ---------------- pasos ----------------
    def _connect(self) -> None:
        self._enter(MaintenanceState.CONNECTING)
        logger.info("Intentando conectar a la base de datos...")
        try:
            self._conn = self.engine.connect()
        except Exception as e:
            self._fail(FailureKind.CONNECT, e)
            return
        logger.info("Conexión exitosa a la base de datos.")

    def _begin(self) -> None:
        self._enter(MaintenanceState.TRANSACTING)
        try:
            self._trans = self._conn.begin()
        except Exception as e:
            self._fail(FailureKind.TRANSACTION_START, e)

    def _compile(self) -> List[Statement]:
        dialect = self._conn.dialect
        has_seq = False
        if dialect.name == "sqlite":
            has_seq = self._conn.execute(
                text("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'sqlite_sequence'")
            ).first() is not None
        return self.plan.statements(dialect, sqlite_sequence=has_seq)

    def _run_batch(self) -> None:
        try:
            statements = self._compile()
        except Exception as e:
            self._fail(FailureKind.STATEMENT, e, statement="prepare")
            return

        for stmt in statements:
            logger.info("Ejecutando %s...", stmt.label)
            try:
                self._conn.execute(stmt.clause, stmt.params or None)
            except Exception as e:
                # se corta el lote: las sentencias siguientes no se ejecutan
                self._fail(FailureKind.STATEMENT, e, statement=stmt.label)
                return
            if not self.executed or self.executed[-1] != stmt.label:
                self.executed.append(stmt.label)

    def _commit(self) -> None:
        self._enter(MaintenanceState.COMMITTING)
        self._commit_attempted = True
        try:
            self._trans.commit()
        except Exception as e:
            self._fail(FailureKind.COMMIT, e)
            return
        logger.info("Todos los cambios han sido confirmados exitosamente.")
        self._enter(MaintenanceState.DONE_OK)

    def _rollback(self) -> None:
        self._enter(MaintenanceState.ROLLING_BACK)
        try:
            if self._trans is not None and self._trans.is_active:
                self._trans.rollback()
                logger.info("Se ha realizado un rollback debido al error.")
            elif self._commit_attempted:
                # COMMIT fallido: estado de la transacción desconocido, se descarta la conexión
                self._conn.invalidate()
                logger.info("Conexión invalidada tras COMMIT fallido.")
        except Exception as e:
            self.secondary.append(Failure(kind=FailureKind.ROLLBACK, detail=driver_message(e)))
            logger.warning("Error al intentar rollback: %s", driver_message(e))
        self._enter(MaintenanceState.DONE_FAIL)

    def _release(self) -> None:
        self._enter(MaintenanceState.RELEASING)
        if self._conn is None or self._conn.closed:
            return
        try:
            self._conn.close()
            logger.info("Conexión a la base de datos cerrada.")
        except Exception as e:
            self.secondary.append(Failure(kind=FailureKind.RELEASE, detail=driver_message(e)))
            logger.warning("Error al cerrar la conexión: %s", driver_message(e))

    # ---------------- orquestación ----------------
    def execute(self) -> MaintenanceResult:
        self._connect()
        if self._conn is not None:
            self._begin()
            if self.failure is None:
                self._run_batch()
            if self.failure is None:
                self._commit()
            if self.failure is not None:
                self._rollback()
            self._release()
        self._enter(MaintenanceState.TERMINAL)

        if self.failure is None:
            message = SUCCESS_MESSAGE
        else:
            message = f"{FAILURE_PREFIX}: {self.failure.detail}"
        return MaintenanceResult(
            ok=self.failure is None,
            message=message,
            failure=self.failure,
            secondary=list(self.secondary),
            history=list(self.history),
            executed=list(self.executed),
        )


def perform_maintenance(engine: Engine, plan: MaintenancePlan) -> MaintenanceResult:
    return MaintenanceRun(engine, plan).execute()

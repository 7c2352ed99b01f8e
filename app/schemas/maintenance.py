# app/schemas/maintenance.py
from __future__ import annotations
from typing import Literal
from pydantic import BaseModel, Field

class MaintenanceOut(BaseModel):
    status: Literal["success", "error"]
    message: str
    kind: str | None = Field(default=None, description="Tipo de fallo principal (solo en error)")
    statement: str | None = Field(default=None, description="Sentencia que falló, p.ej. 'truncate:tbOrden'")

# app/api/maintenance.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.engine import Engine

from app.db.session import get_engine, get_plan
from app.maintenance.handler import perform_maintenance
from app.maintenance.plan import MaintenancePlan
from app.schemas.maintenance import MaintenanceOut

templates = Jinja2Templates(directory="app/templates")
router = APIRouter()


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index(request: Request, plan: MaintenancePlan = Depends(get_plan)):
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "app_name": request.app.title,
            "tables": plan.truncate_tables,
            "reset": plan.column_reset,
        },
    )


@router.post(
    "/clean_database",
    response_model=MaintenanceOut,
    response_model_exclude_none=True,
    responses={500: {"model": MaintenanceOut}},
)
def clean_database(
    engine: Engine = Depends(get_engine),
    plan: MaintenancePlan = Depends(get_plan),
):
    # endpoint sync: corre en el threadpool, una conexión del pool por request
    result = perform_maintenance(engine, plan)
    if result.ok:
        return MaintenanceOut(status="success", message=result.message)

    body = MaintenanceOut(
        status="error",
        message=result.message,
        kind=result.kind.value if result.kind else None,
        statement=result.statement,
    )
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))

# app/core/config.py
from fastapi import FastAPI
from .settings import Settings, settings as default_settings
from app.maintenance.plan import MaintenancePlan

def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(title=settings.APP_NAME)

    # Plan fijo de mantenimiento: se arma UNA vez al arrancar (falla rápido si la config es inválida)
    app.state.settings = settings
    app.state.maintenance_plan = MaintenancePlan.from_settings(settings)
    return app

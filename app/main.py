from __future__ import annotations

from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.api.health import router as health_router
from app.api.maintenance import router as maintenance_router
from app.core.config import create_app
from app.core.logging import configure_logging
from app.core.settings import settings


app = create_app()
configure_logging(settings.LOG_LEVEL)

app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")

app.include_router(health_router, prefix="/health", tags=["health"])
app.include_router(maintenance_router, tags=["maintenance"])

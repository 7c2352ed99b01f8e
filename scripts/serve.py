# scripts/serve.py
import uvicorn

from app.core.settings import settings

if __name__ == "__main__":
    print(f"Servidor escuchando en http://localhost:{settings.PORT}")
    uvicorn.run("app.main:app", host=settings.HOST, port=settings.PORT, proxy_headers=True)

# app/core/settings.py
from __future__ import annotations

import json
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import URL

DEFAULT_TRUNCATE_TABLES = ["tbKardex", "tbOrden", "tbDespUrea"]
DEFAULT_RESET_TABLE = "tbInvUrea"
DEFAULT_RESET_COLUMNS = {"nExiMir": 0, "nExiSis": 0, "nUltCos": 0, "nPreProm": 0}


def _split_list(s: str) -> List[str]:
    """
    Acepta:
    - JSON list válido: '["a","b"]'
    - Lista con corchetes sin comillas: [a,b]
    - CSV sin corchetes: 'a,b'
    """
    s = s.strip()
    if s.startswith("[") and s.endswith("]"):
        try:
            parsed = json.loads(s)
            if isinstance(parsed, list):
                return [str(x) for x in parsed]
        except Exception:
            # Fallback: quitar corchetes y tratar como CSV
            s = s[1:-1]
    return [item.strip().strip('"').strip("'") for item in s.split(",") if item.strip()]


class Settings(BaseSettings):
    # ============== App ==============
    APP_NAME: str = "Mantenimiento Urea"
    ENV: str = "dev"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ============== Servidor ==============
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # ================== DB (SQL Server) ==================
    DB_USER: str = "TU_USUARIO_SQL"
    DB_PASSWORD: str = "TU_CONTRASEÑA_SQL"
    DB_SERVER: str = "localhost"
    DB_DATABASE: str = "TU_BASE_DE_DATOS"
    DB_PORT: int = 1433
    DB_ENCRYPT: bool = False  # true para Azure SQL Database
    DB_TRUST_SERVER_CERTIFICATE: bool = False  # true para certificados autofirmados
    DB_ODBC_DRIVER: str = "ODBC Driver 18 for SQL Server"

    # Si viene definida, tiene prioridad sobre los DB_* de arriba
    DATABASE_URL: Optional[str] = None

    DB_POOL_PRE_PING: bool = True
    DB_POOL_RECYCLE: int = 1800

    # ============== Mantenimiento ==============
    # NoDecode: el parseo (JSON o CSV) lo hacen los validadores
    MAINTENANCE_TRUNCATE_TABLES: Annotated[List[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_TRUNCATE_TABLES))
    MAINTENANCE_RESET_TABLE: str = DEFAULT_RESET_TABLE
    MAINTENANCE_RESET_COLUMNS: Annotated[Dict[str, Union[int, float, None]], NoDecode] = Field(
        default_factory=lambda: dict(DEFAULT_RESET_COLUMNS)
    )

    @field_validator("MAINTENANCE_TRUNCATE_TABLES", mode="before")
    @classmethod
    def _parse_tables(cls, v: Any):
        if v in (None, "", []):
            return list(DEFAULT_TRUNCATE_TABLES)
        if isinstance(v, (list, tuple)):
            return [str(x) for x in v]
        if isinstance(v, str):
            return _split_list(v)
        return v

    @field_validator("MAINTENANCE_RESET_COLUMNS", mode="before")
    @classmethod
    def _parse_columns(cls, v: Any):
        """
        JSON object '{"nExiMir": 0, "nUltCos": null}' o CSV de columnas
        (cada una vuelve a 0).
        """
        if v in (None, "", {}):
            return dict(DEFAULT_RESET_COLUMNS)
        if isinstance(v, dict):
            return v
        if isinstance(v, (list, tuple)):
            return {str(c): 0 for c in v}
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("{"):
                return json.loads(s)
            return {c: 0 for c in _split_list(s)}
        return v

    @property
    def SQLALCHEMY_DATABASE_URL(self) -> Union[str, URL]:
        """
        DATABASE_URL explícita (normalizando el estilo Heroku postgres://)
        o, si no existe, la URL mssql+pyodbc armada con los DB_*.
        """
        url = self.DATABASE_URL or ""
        if url:
            if url.startswith("postgres://"):
                return url.replace("postgres://", "postgresql+psycopg2://", 1)
            if url.startswith("postgresql://"):
                return url.replace("postgresql://", "postgresql+psycopg2://", 1)
            return url

        return URL.create(
            "mssql+pyodbc",
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_SERVER,
            port=self.DB_PORT,
            database=self.DB_DATABASE,
            query={
                "driver": self.DB_ODBC_DRIVER,
                "Encrypt": "yes" if self.DB_ENCRYPT else "no",
                "TrustServerCertificate": "yes" if self.DB_TRUST_SERVER_CERTIFICATE else "no",
            },
        )

    # ============== Pydantic v2 ==============
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()

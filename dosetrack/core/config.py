"""
Configuración de la aplicación para MySQL y motor de adherencia
"""
from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Información del proyecto
    PROJECT_NAME: str = Field(default="DoseTrack API")
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = Field(default="production")
    DEBUG: bool = Field(default=False)

    # Configuración del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8081)

    # Base de datos MySQL
    DB_HOST: str = Field(default="localhost")
    DB_PORT: int = Field(default=3306)
    DB_NAME: str = Field(default="dosetrack")
    DB_USER: str = Field(default="dosetrack_user")
    DB_PASSWORD: str = Field(default="")
    DB_CHARSET: str = Field(default="utf8mb4")

    # URL completa (ej: sqlite:///./dosetrack.db), tiene prioridad sobre DB_*
    DATABASE_URL: Optional[str] = Field(default=None)

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173"
        ]
    )

    # Hosts aceptados en producción
    ALLOWED_HOSTS: List[str] = Field(default=["localhost", "127.0.0.1"])

    # Logging
    LOG_LEVEL: str = Field(default="INFO")

    # Horario civil fijo para todos los pacientes (UTC-3)
    CIVIL_UTC_OFFSET_HOURS: int = Field(default=-3, ge=-12, le=14)

    # Adherencia
    DOSE_TOLERANCE_MINUTES: int = Field(default=15, ge=0)
    DEFAULT_REPORT_PERIOD: str = Field(default="7d")

    @property
    def database_url(self) -> str:
        """Construir URL de conexión MySQL"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            f"?charset={self.DB_CHARSET}"
        )

    @property
    def is_production(self) -> bool:
        """Verificar si estamos en producción"""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    """Obtener configuración con cache"""
    return Settings()

"""
Configuración de base de datos con SQLAlchemy (MySQL en producción, SQLite en desarrollo)
"""
from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool
import logging

# Crear Base ANTES de importar config para evitar import circular
Base = declarative_base()

from dosetrack.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def build_engine(url: str, debug: bool = False):
    """Crear engine de SQLAlchemy según el tipo de base de datos"""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=debug,
        )

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=20,
        max_overflow=30,
        pool_pre_ping=True,
        pool_recycle=3600,  # Reciclar conexiones cada hora
        echo=debug,
    )


try:
    engine = build_engine(settings.database_url, settings.DEBUG)
except Exception as e:
    logger.warning(f"No se pudo crear engine: {e}")
    engine = None

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine) if engine else None


def get_db():
    """
    Dependency para obtener sesión de base de datos
    """
    if not SessionLocal:
        raise RuntimeError("Base de datos no configurada")

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """
    Crear todas las tablas si no existen
    """
    bind = bind or engine
    if bind is None:
        raise RuntimeError("Engine de base de datos no configurado")

    # Importar todos los modelos para que se registren
    from dosetrack.models import medication, dose_record, medical_test, audit  # noqa: F401

    try:
        Base.metadata.create_all(bind=bind)
        logger.info("✅ Tablas creadas/verificadas exitosamente")
    except Exception as e:
        logger.error(f"❌ Error al crear tablas: {e}")
        raise


def drop_tables(bind=None):
    """
    Eliminar todas las tablas (usar con cuidado)
    """
    bind = bind or engine
    if bind is None:
        raise RuntimeError("Engine de base de datos no configurado")

    try:
        Base.metadata.drop_all(bind=bind)
        logger.warning("⚠️ Todas las tablas han sido eliminadas")
    except Exception as e:
        logger.error(f"❌ Error al eliminar tablas: {e}")
        raise


def test_connection():
    """
    Probar conexión a la base de datos
    """
    if not engine:
        logger.error("❌ Engine no configurado")
        return False

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.info("✅ Conexión a la base de datos exitosa")
        return True
    except Exception as e:
        logger.error(f"❌ Error de conexión a la base de datos: {e}")
        return False


def get_db_info():
    """
    Obtener información de la base de datos
    """
    if not engine:
        return None

    try:
        with engine.connect() as conn:
            if settings.is_sqlite:
                version = conn.execute(text("SELECT sqlite_version()")).fetchone()[0]
                return {
                    "engine": "sqlite",
                    "version": version,
                    "database_name": engine.url.database or ":memory:",
                }

            version = conn.execute(text("SELECT VERSION()")).fetchone()[0]
            database = conn.execute(text("SELECT DATABASE()")).fetchone()[0]

            return {
                "engine": "mysql",
                "version": version,
                "database_name": database,
                "host": settings.DB_HOST,
                "port": settings.DB_PORT,
                "charset": settings.DB_CHARSET
            }
    except Exception as e:
        logger.error(f"Error al obtener info de DB: {e}")
        return None

"""
Database configuration and session management

Usage:
    >>> from evaladmin.database import init_database, get_db_session
    >>> init_database()  # lee DATABASE_URL
    >>> with get_db_session() as db:
    ...     EvaluationRepository(db).get_all()

En FastAPI la sesión se inyecta con `Depends(get_db)` (una sesión por request).
"""
import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .base import Base

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./evaladmin.db"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite no aplica ON DELETE sin este PRAGMA."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseConfig:
    """
    Configuración de engine y fábrica de sesiones.

    Environment:
        DATABASE_URL: URL SQLAlchemy (default sqlite:///./evaladmin.db)
        DATABASE_ECHO: "true" para loguear SQL
        DATABASE_POOL_SIZE / DATABASE_MAX_OVERFLOW: sólo para motores con pool
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        echo: Optional[bool] = None,
        pool_size: Optional[int] = None,
        max_overflow: Optional[int] = None,
    ):
        self.database_url = database_url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
        if echo is None:
            echo = os.getenv("DATABASE_ECHO", "false").lower() == "true"
        self.echo = echo
        self.pool_size = pool_size or int(os.getenv("DATABASE_POOL_SIZE", "5"))
        self.max_overflow = max_overflow or int(os.getenv("DATABASE_MAX_OVERFLOW", "10"))

        self.engine = self._create_engine()
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def _create_engine(self) -> Engine:
        if self.is_sqlite:
            kwargs = {"connect_args": {"check_same_thread": False}}
            # In-memory databases live in a single connection
            if self.database_url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
            engine = create_engine(self.database_url, echo=self.echo, **kwargs)
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        else:
            engine = create_engine(
                self.database_url,
                echo=self.echo,
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_pre_ping=True,
            )

        logger.info(
            "Database engine created",
            extra={"dialect": engine.dialect.name, "echo": self.echo},
        )
        return engine

    def create_tables(self) -> None:
        """Crea las tablas que no existan."""
        # Register models on Base.metadata
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ready", extra={"tables": sorted(Base.metadata.tables)})

    def drop_tables(self) -> None:
        from . import models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


_db_config: Optional[DatabaseConfig] = None


def get_db_config() -> DatabaseConfig:
    """Devuelve la configuración global, creándola desde el entorno si hace falta."""
    global _db_config
    if _db_config is None:
        _db_config = DatabaseConfig()
    return _db_config


def init_database(database_url: Optional[str] = None, create_tables: bool = True) -> DatabaseConfig:
    """
    Inicializa (o reemplaza) la configuración global de base de datos.

    Args:
        database_url: URL explícita; si es None se usa DATABASE_URL
        create_tables: Crear tablas faltantes

    Returns:
        DatabaseConfig activa
    """
    global _db_config
    if _db_config is not None:
        _db_config.dispose()
    _db_config = DatabaseConfig(database_url)
    if create_tables:
        _db_config.create_tables()
    return _db_config


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: una sesión por request."""
    db = get_db_config().SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Sesión para scripts y tareas fuera de FastAPI."""
    db = get_db_config().SessionLocal()
    try:
        yield db
    finally:
        db.close()

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _configure_sqlite(engine: Engine) -> None:
    """
    Backend embebido: claves foráneas activas y cada transacción abre con
    BEGIN IMMEDIATE, que toma el lock de escritura antes de leer el saldo.
    Es el equivalente de SELECT ... FOR UPDATE para SQLite.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # pysqlite emite su propio BEGIN diferido; lo desactivamos
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_ledger_engine(url: str, echo: bool = False) -> Engine:
    """
    Crear el engine para cualquiera de los dos backends del ledger.

    - sqlite://...      base embebida (local / offline)
    - postgresql://...  servidor relacional; el bloqueo de la fila del
                        cliente lo hace el código de posting con FOR UPDATE
    """
    if _is_sqlite(url):
        in_memory = url in ("sqlite://", "sqlite:///:memory:")
        options = {"connect_args": {"check_same_thread": False}}
        if in_memory:
            # una sola conexión compartida, si no cada conexión ve una base vacía
            options["poolclass"] = StaticPool
        engine = create_engine(url, echo=echo, **options)
        _configure_sqlite(engine)
        logger.debug(f"Engine SQLite creado ({'memoria' if in_memory else url})")
        return engine

    engine = create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )
    logger.debug("Engine relacional creado")
    return engine


engine = create_ledger_engine(settings.database_url, echo=settings.DEBUG and settings.ENVIRONMENT == "development")

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """Genera una sesión de base de datos por request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# obratrack/database.py

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, scoped_session
from obratrack.core.settings import settings
import logging

logger = logging.getLogger("ObraTrack.Database")


def configure_sqlite(engine: Engine) -> None:
    """
    Включает внешние ключи (ON DELETE CASCADE / SET NULL) и нормальную работу
    SAVEPOINT для pysqlite: драйвер сам не шлёт BEGIN, поэтому делаем это явно.
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Аргументы подключения зависят от диалекта
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=connect_args,
)
configure_sqlite(engine)

# Фабрика сессий (scoped_session для потокобезопасности)
SessionLocal = scoped_session(
    sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )
)


def init_db() -> None:
    """Создаёт таблицы, если их ещё нет (без миграций)."""
    import obratrack.models  # noqa: F401  регистрирует все модели в Base.metadata
    from obratrack.models.base import Base

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")

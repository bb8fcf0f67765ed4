import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session

import config
from models.base import Base

logger = logging.getLogger(__name__)

_engine = None
_SessionFactory = None


def enable_sqlite_savepoints(engine):
    """
    pysqlite emits BEGIN lazily, which breaks SAVEPOINT (session.begin_nested).
    Take over transaction control so nested writes stay inside the outer unit of work.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def get_engine():
    """Создает (один раз) и возвращает движок базы данных"""
    global _engine
    if _engine is None:
        isSqlite = config.DATABASE_URL.startswith("sqlite")
        connect_args = {"check_same_thread": False} if isSqlite else {}
        _engine = create_engine(config.DATABASE_URL, echo=config.SQL_ECHO, connect_args=connect_args)
        if isSqlite:
            enable_sqlite_savepoints(_engine)
        logger.info(f"Database engine created: {config.DATABASE_URL}")
    return _engine


def get_session_factory():
    """Создает (один раз) и возвращает фабрику сессий"""
    global _SessionFactory
    if _SessionFactory is None:
        _SessionFactory = sessionmaker(bind=get_engine())
    return _SessionFactory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope():
    """
    Unit of work for one lifecycle transition.

    Usage:
        with session_scope() as session:
            DepositService(session).updateDepositStatus(depositId, "Approved")

    Balance changes, ledger rows and notifications commit together or not at all.
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Transaction rolled back: {e}")
        raise
    finally:
        session.close()


def init_tables(engine=None):
    """Инициализирует таблицы базы данных"""
    import models  # noqa: F401  регистрирует все модели в Base.metadata
    Base.metadata.create_all(engine or get_engine())


def drop_all_tables(engine=None):
    """Удаляет все таблицы - ОСТОРОЖНО!"""
    logger.warning("Dropping all tables...")
    Base.metadata.drop_all(engine or get_engine())

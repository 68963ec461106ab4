# storefront/data/database.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront.utils.settings import DATABASE_URL, DB_STATEMENT_TIMEOUT_MS

Base = declarative_base()


def make_engine(url: str = DATABASE_URL) -> Engine:
    """
    Postgres: statement_timeout na poziomie polaczenia.
    SQLite: BEGIN IMMEDIATE, czyli jeden pisarz naraz (sqlite nie ma row locków).
    """
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

        @event.listens_for(engine, "connect")
        def _sqlite_connect(dbapi_connection, connection_record):
            # transakcje prowadzi SQLAlchemy, nie pysqlite
            dbapi_connection.isolation_level = None
            dbapi_connection.execute("PRAGMA foreign_keys=ON")

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    connect_args = {}
    if url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}"

    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, expire_on_commit=False)


engine = make_engine()
SessionLocal = make_session_factory(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

def _is_memory_sqlite(database_url: str) -> bool:
    if not database_url.startswith("sqlite"):
        return False
    return ":memory:" in database_url or database_url.endswith("://")

def _begin_immediate(engine):
    # sqlite transactions take the write lock at BEGIN, not at the first write
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine

def get_engine(database_url: str, echo: bool = False):
    if _is_memory_sqlite(database_url):
        # every session must share one connection or each sees an empty database
        return _begin_immediate(create_async_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        ))
    engine = create_async_engine(database_url, echo=echo, future=True)
    if database_url.startswith("sqlite"):
        return _begin_immediate(engine)
    return engine

Base = declarative_base()

def get_session(engine):
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False
    )

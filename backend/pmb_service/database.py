"""Database engine and helpers.

The engine is built once by the application factory and kept on
`app.state.engine`; nothing in this module holds a module-level engine.
Requests get their own `Session` through `get_session`.
"""

from fastapi import Request
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from . import models  # noqa: F401  registers the tables on SQLModel.metadata


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create the SQLAlchemy engine for `database_url`.

    SQLite needs `check_same_thread` disabled because FastAPI runs sync
    endpoints in a threadpool.
    """
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=echo, connect_args=connect_args)


def create_db_and_tables(engine: Engine):
    """Create database tables using SQLModel metadata.

    Intended for local development, tests and the seed script;
    production deployments should rely on a proper migration tool.
    """
    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    """Yield a database `Session` for FastAPI dependency injection.

    The session is bound to the engine of the application serving the
    request and is closed when the request scope finishes.
    """
    with Session(request.app.state.engine) as session:
        yield session

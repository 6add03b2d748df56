"""
Declarative base, engine construction and the request-scoped session
dependency.

There is no module-level engine: `WellnessCore.init()` builds one from
Settings and the app factory stores the core on `app.state.core`.
"""
from typing import Iterator

from fastapi import Request
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.core.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_core(request: Request):
    return request.app.state.core

"""Database engine, session factory and schema setup for the fight store."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase


class Base(DeclarativeBase):
    pass


def create_db_engine(db_url: str):
    connect_args = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # required for SQLite + threads
    return create_engine(db_url, echo=False, connect_args=connect_args)


def create_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)


def create_schema(engine) -> None:
    # Import registers the mapped tables on Base.metadata
    from models import models  # noqa: F401
    Base.metadata.create_all(engine)

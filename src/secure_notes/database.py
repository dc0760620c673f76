from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def build_engine(database_url: str) -> Engine:
    """Create an engine for the given URL; SQLite gets thread-safe connect args."""
    kwargs = {"future": True}
    if database_url.startswith("sqlite"):
        # SQLite needs check_same_thread=False for multithreading in FastAPI
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory databases only live as long as their one connection
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    """
    Dependency that provides a database session and ensures proper cleanup.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

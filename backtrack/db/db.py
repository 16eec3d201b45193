from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# table models must be imported so create_all sees them
from backtrack.models.found_item import FoundItem  # noqa: F401
from backtrack.models.lost_item import LostItem  # noqa: F401
from backtrack.models.user import User  # noqa: F401
from backtrack.models.verification import Verification  # noqa: F401


def make_engine(database_url: str) -> Engine:
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    # FastAPI runs sync routes in a threadpool, so sqlite connections cross threads
    connect_args = {"check_same_thread": False}

    if database_url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)

    return create_engine(database_url, connect_args=connect_args)


def init_db(engine: Engine):
    SQLModel.metadata.create_all(engine)


def get_context(request: Request):
    return request.app.state.context


def get_session(context=Depends(get_context)) -> Iterator[Session]:
    with Session(context.engine) as session:
        yield session

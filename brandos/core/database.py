"""
Control-plane database configuration and session management
"""

from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session
import structlog

from brandos.core.config import Settings
from brandos.models import CONTROL_PLANE_TABLES

logger = structlog.get_logger(__name__)


def create_control_plane_engine(settings: Settings) -> Engine:
    """Create the engine for the shared control-plane database"""
    url = settings.DATABASE_URL
    kwargs = {}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    return create_engine(url, echo=settings.DATABASE_ECHO, future=True, **kwargs)


def init_db(engine: Engine) -> None:
    """Create control-plane tables (partition tables are created per tenant)"""
    SQLModel.metadata.create_all(engine, tables=CONTROL_PLANE_TABLES)
    logger.info("Control-plane tables created")


def get_session(request: Request) -> Iterator[Session]:
    """Dependency to get a control-plane database session"""
    with Session(request.app.state.services.engine, expire_on_commit=False) as session:
        yield session

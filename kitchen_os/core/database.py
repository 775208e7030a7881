"""
Database configuration and session management
"""

from sqlmodel import Session, create_engine
from sqlalchemy.pool import StaticPool

from kitchen_os.core.config import get_settings

settings = get_settings()


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # In-memory SQLite must share one connection across threads
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {"pool_pre_ping": True}


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG and settings.ENVIRONMENT == "development",
    **_engine_kwargs(settings.DATABASE_URL),
)


def get_session():
    """Dependency to get database session"""
    with Session(engine) as session:
        yield session

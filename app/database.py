from typing import Callable

from sqlmodel import SQLModel, create_engine, Session
from app.config import settings

if settings.database_url.startswith("sqlite"):
    engine = create_engine(
        settings.database_url,
        echo=False,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        settings.database_url,
        echo=False,
        pool_pre_ping=True,      # checks dead connections
        pool_recycle=1800        # refresh every 30 min
    )


def create_db_and_tables():
    from app import models  # noqa: F401  registers every table on the metadata
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session


def get_session_factory() -> Callable[[], Session]:
    """For work that may outlive the request, such as webhook processing in a worker thread."""
    return lambda: Session(engine)

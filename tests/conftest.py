import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from config import Settings
from database import Base


def _settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite://",
        timezone="UTC",
        service_name="costs",
        logs_service_url=None,
        logs_timeout_secs=0.5,
        team_members=[],
        host="127.0.0.1",
        port=8000,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def make_settings():
    return _settings


@pytest.fixture
def settings() -> Settings:
    return _settings()


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def session(session_factory):
    session = session_factory()
    yield session
    session.close()

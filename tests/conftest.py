"""Shared test fixtures."""
import os

# Keep the app engine off the working directory; must be set before settings load
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from fitlog.models.workout import WorkoutSummary  # noqa: F401
from fitlog.db.store import WorkoutStore

import fit_builder


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="store")
def store_fixture(engine) -> WorkoutStore:
    return WorkoutStore(engine)


@pytest.fixture(name="run_fit")
def run_fit_fixture() -> bytes:
    """Scenario A: 45-minute run, 8.4 km, HR 120-168 bpm."""
    return fit_builder.run_45min()


@pytest.fixture(name="no_hr_fit")
def no_hr_fit_fixture() -> bytes:
    """Scenario C: same run recorded without a heart-rate sensor."""
    return fit_builder.run_45min(with_heart_rate=False)

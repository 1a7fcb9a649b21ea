"""Shared fixtures: capital table, dataset files and an in-memory database."""

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from blendcurve.database import build_engine, create_db_and_tables
from blendcurve.services.capital_blender import CapitalTable

from factories import ES_ROWS, NQ_ROWS, csv_text


@pytest.fixture
def capital_table() -> CapitalTable:
    return CapitalTable.from_mappings(
        {"nq_trades.csv": 100_000.0, "es_trades.csv": 100_000.0, "mes_trades.csv": 10_000.0},
        {"nq_trades.csv": "Atlas NQ", "es_trades.csv": "Gateway ES"},
    )


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "nq_trades.csv").write_text(csv_text(NQ_ROWS))
    (tmp_path / "es_trades.csv").write_text(csv_text(ES_ROWS))
    return tmp_path


@pytest.fixture
def db_engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(db_engine):
    with Session(db_engine) as session:
        yield session

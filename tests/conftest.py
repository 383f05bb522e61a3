"""Shared fixtures: small deterministic markets, in-memory exchange, temp DuckDB."""

import random
import shutil
import tempfile
from datetime import date
from pathlib import Path

import pytest

from predsim.config import Settings
from predsim.exchange import Exchange
from predsim.models import Category, HistoryPoint, Market, Outcome
from predsim.store import MarketStore, UserLedger
from predsim.storage.db import get_connection, init_schema


def make_market(
    market_id: str,
    category: Category = Category.CRYPTO,
    yes_price: float = 0.5,
    volume: float = 0.0,
    created_at: int = 1_000,
    question: str | None = None,
    description: str = "",
) -> Market:
    return Market(
        market_id=market_id,
        question=question or f"Question {market_id}?",
        description=description,
        category=category,
        volume=volume,
        end_date=date(2030, 1, 1),
        created_at=created_at,
        outcomes=[
            Outcome(outcome_id="YES", name="Yes", price=yes_price),
            Outcome(outcome_id="NO", name="No", price=1 - yes_price),
        ],
        history=[HistoryPoint(timestamp=created_at, price=yes_price)],
    )


@pytest.fixture
def exchange():
    """In-memory exchange (no storage) with one 50/50 market 'm1' and instant connect."""
    return Exchange(
        MarketStore([make_market("m1")]),
        UserLedger(connect_delay_sec=0),
        rng=random.Random(0),
    )


@pytest.fixture
def temp_db_path():
    tmp = tempfile.mkdtemp()
    path = Path(tmp) / "test.duckdb"
    yield path
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def temp_db(temp_db_path):
    conn = get_connection(temp_db_path)
    init_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def settings(temp_db_path, monkeypatch):
    monkeypatch.delenv("PREDSIM_LLM_API_KEY", raising=False)
    return Settings.from_dict(
        {
            "storage": {"db_path": str(temp_db_path)},
            "ledger": {"connect_delay_sec": 0},
        }
    )

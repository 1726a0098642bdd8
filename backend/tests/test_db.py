import pytest
from sqlalchemy.pool import NullPool, StaticPool

from tourney_rank.db import database_url, engine_options


def test_plain_postgres_url_uses_asyncpg(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://rank:pw@db/tourney")
    assert database_url() == "postgresql+asyncpg://rank:pw@db/tourney"


def test_missing_url_is_refused(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "  ")
    with pytest.raises(RuntimeError):
        database_url()


def test_pool_follows_backend():
    assert engine_options("sqlite+aiosqlite:///:memory:")["poolclass"] is StaticPool
    assert engine_options("sqlite+aiosqlite:///rank.db")["poolclass"] is NullPool
    assert engine_options("postgresql+asyncpg://db/tourney") == {"pool_pre_ping": True}

# backend/tests/test_deletion.py
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from billboard_rental.models import Base, Billboard, SharedTransaction
from billboard_rental.services.deletion import (
    REASON_IN_USE,
    REASON_NOT_FOUND,
    DeleteOutcome,
    StrategyResult,
    billboard_delete_strategies,
    run_strategies,
)


# -----------------------------
# Runner with scripted strategies
# -----------------------------
class _Scripted:
    def __init__(self, name, outcome, reason=None):
        self.name = name
        self.outcome = outcome
        self.reason = reason
        self.calls = []

    def __call__(self, target_id):
        self.calls.append(target_id)
        return StrategyResult(self.name, self.outcome, self.reason)


def test_runner_moves_on_after_retryable():
    first = _Scripted("rpc", DeleteOutcome.RETRYABLE)
    second = _Scripted("direct", DeleteOutcome.SUCCESS)
    report = run_strategies([first, second], 5)
    assert report.succeeded
    assert [a.strategy for a in report.attempts] == ["rpc", "direct"]
    assert second.calls == [5]


def test_runner_stops_on_fatal():
    first = _Scripted("rpc", DeleteOutcome.FATAL, REASON_IN_USE)
    second = _Scripted("direct", DeleteOutcome.SUCCESS)
    report = run_strategies([first, second], 5)
    assert not report.succeeded
    assert report.reason == REASON_IN_USE
    assert second.calls == []


def test_runner_all_retryable():
    report = run_strategies([_Scripted("a", DeleteOutcome.RETRYABLE), _Scripted("b", DeleteOutcome.RETRYABLE)], 1)
    assert not report.succeeded
    assert len(report.attempts) == 2
    assert report.as_dict()["attempts"][1]["outcome"] == "retryable"


# -----------------------------
# Billboard strategies on SQLite
# -----------------------------
@pytest.fixture
def db(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'delete.db'}", connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_connection, connection_record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def test_sqlite_falls_back_to_direct_delete(db):
    db.add(Billboard(id=1, name="B1", size="4x12"))
    db.commit()

    report = run_strategies(billboard_delete_strategies(db, Billboard), 1)
    assert report.succeeded
    assert [(a.strategy, a.outcome) for a in report.attempts] == [
        ("delete_billboard_safe", DeleteOutcome.RETRYABLE),
        ("direct_delete", DeleteOutcome.SUCCESS),
    ]
    assert db.query(Billboard).filter(Billboard.id == 1).count() == 0


def test_missing_billboard_is_not_found(db):
    report = run_strategies(billboard_delete_strategies(db, Billboard), 404)
    assert not report.succeeded
    assert report.reason == REASON_NOT_FOUND


def test_referenced_billboard_is_in_use(db):
    db.add(Billboard(id=2, name="Shared", is_partnership=True, capital=Decimal("1000")))
    db.flush()
    db.add(SharedTransaction(billboard_id=2, beneficiary="الفارس", amount=Decimal("10"), type="rental_income"))
    db.commit()

    report = run_strategies(billboard_delete_strategies(db, Billboard), 2)
    assert not report.succeeded
    assert report.reason == REASON_IN_USE
    assert db.query(Billboard).filter(Billboard.id == 2).count() == 1

# backend/billboard_rental/services/deletion.py
"""
Ordered delete strategies.

Each strategy reports a typed outcome instead of raising:
  success   -> stop, the row is gone
  retryable -> this way is not available here; try the next strategy
  fatal     -> stop, no strategy can succeed (row missing / still referenced)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, ProgrammingError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class DeleteOutcome(str, Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


REASON_NOT_FOUND = "not_found"
REASON_IN_USE = "in_use"
REASON_ERROR = "error"


@dataclass(frozen=True)
class StrategyResult:
    strategy: str
    outcome: DeleteOutcome
    reason: Optional[str] = None
    message: str = ""


@dataclass
class DeleteReport:
    target_id: Any
    attempts: List[StrategyResult] = field(default_factory=list)

    @property
    def final(self) -> Optional[StrategyResult]:
        return self.attempts[-1] if self.attempts else None

    @property
    def succeeded(self) -> bool:
        return self.final is not None and self.final.outcome == DeleteOutcome.SUCCESS

    @property
    def reason(self) -> Optional[str]:
        return None if self.succeeded or self.final is None else self.final.reason

    def as_dict(self) -> dict:
        return {
            "target_id": self.target_id,
            "succeeded": self.succeeded,
            "attempts": [
                {"strategy": a.strategy, "outcome": a.outcome.value, "reason": a.reason, "message": a.message}
                for a in self.attempts
            ],
        }


class DeleteStrategy:
    name = "strategy"

    def __call__(self, target_id: Any) -> StrategyResult:  # pragma: no cover - interface
        raise NotImplementedError


def run_strategies(strategies: Sequence[Callable[[Any], StrategyResult]], target_id: Any) -> DeleteReport:
    report = DeleteReport(target_id=target_id)
    for strategy in strategies:
        result = strategy(target_id)
        report.attempts.append(result)
        if result.outcome == DeleteOutcome.SUCCESS:
            logger.info("deleted %s via %s", target_id, result.strategy)
            break
        if result.outcome == DeleteOutcome.FATAL:
            logger.warning("delete %s stopped at %s: %s", target_id, result.strategy, result.message)
            break
        logger.warning("delete %s: %s unavailable (%s), trying next", target_id, result.strategy, result.message)
    else:
        if report.attempts:
            logger.error("delete %s: every strategy was retryable", target_id)
    return report


# ----------------- Billboard strategies -----------------
class SafeDeleteFunction(DeleteStrategy):
    """Database-side ``delete_billboard_safe(id)``; may not exist on every backend."""

    name = "delete_billboard_safe"

    def __init__(self, db: Session):
        self.db = db

    def __call__(self, target_id: Any) -> StrategyResult:
        try:
            deleted = self.db.execute(text("SELECT delete_billboard_safe(:id)"), {"id": target_id}).scalar()
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            return StrategyResult(self.name, DeleteOutcome.FATAL, REASON_IN_USE, str(e.orig))
        except (OperationalError, ProgrammingError) as e:
            # missing function / not supported by this database
            self.db.rollback()
            return StrategyResult(self.name, DeleteOutcome.RETRYABLE, REASON_ERROR, str(e.orig))
        if deleted is False:
            return StrategyResult(self.name, DeleteOutcome.FATAL, REASON_NOT_FOUND, "no billboard with this id")
        return StrategyResult(self.name, DeleteOutcome.SUCCESS)


class DirectDelete(DeleteStrategy):
    """Plain ``DELETE FROM <table> WHERE id = :id`` through the ORM."""

    name = "direct_delete"

    def __init__(self, db: Session, model: Any):
        self.db = db
        self.model = model

    def __call__(self, target_id: Any) -> StrategyResult:
        try:
            count = self.db.query(self.model).filter(self.model.id == target_id).delete(synchronize_session=False)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            return StrategyResult(self.name, DeleteOutcome.FATAL, REASON_IN_USE, str(e.orig))
        except DBAPIError as e:
            self.db.rollback()
            return StrategyResult(self.name, DeleteOutcome.FATAL, REASON_ERROR, str(e.orig))
        if not count:
            return StrategyResult(self.name, DeleteOutcome.FATAL, REASON_NOT_FOUND, "no billboard with this id")
        return StrategyResult(self.name, DeleteOutcome.SUCCESS)


def billboard_delete_strategies(db: Session, model: Any) -> List[DeleteStrategy]:
    return [SafeDeleteFunction(db), DirectDelete(db, model)]

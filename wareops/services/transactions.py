"""
Exécution transactionnelle avec retry optimiste.

Une unité de travail (`work(db)`) ne fait QUE des écritures DB : en cas de
conflit elle est rejouée depuis zéro après rollback. Les effets de bord
(notifications) se font après le commit, jamais dedans.
"""

from __future__ import annotations

import os
from typing import Callable, TypeVar

import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from wareops.services.errors import TransactionConflict

logger = structlog.get_logger()

T = TypeVar("T")

MAX_ATTEMPTS = int(os.getenv("WAREOPS_TX_MAX_ATTEMPTS", "3"))

# serialization_failure, deadlock_detected
RETRYABLE_SQLSTATES = {"40001", "40P01"}


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, DBAPIError):
        orig = exc.orig
        code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        return code in RETRYABLE_SQLSTATES
    return False


def run_in_transaction(
    db: Session,
    work: Callable[[Session], T],
    *,
    max_attempts: int | None = None,
) -> T:
    attempts = max_attempts or MAX_ATTEMPTS

    for attempt in range(1, attempts + 1):
        try:
            result = work(db)
            db.commit()
            return result
        except (StaleDataError, DBAPIError) as exc:
            db.rollback()
            if not is_retryable(exc):
                raise
            if attempt >= attempts:
                logger.error("transaction.conflict", attempts=attempt, error=str(exc))
                raise TransactionConflict(attempt) from exc
            logger.warning("transaction.retry", attempt=attempt, error=str(exc))
        except Exception:
            db.rollback()
            raise

    raise TransactionConflict(attempts)

import pytest
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm.exc import StaleDataError

from wareops.services.errors import TransactionConflict
from wareops.services.transactions import is_retryable, run_in_transaction


class _PgError(Exception):
    def __init__(self, sqlstate):
        super().__init__(sqlstate)
        self.sqlstate = sqlstate


def test_stale_data_is_retried_then_committed(db_session):
    calls = []

    def work(tx):
        calls.append(1)
        if len(calls) == 1:
            raise StaleDataError("version mismatch")
        return "done"

    assert run_in_transaction(db_session, work) == "done"
    assert len(calls) == 2


def test_conflict_surfaces_after_bounded_attempts(db_session):
    calls = []

    def work(tx):
        calls.append(1)
        raise StaleDataError("version mismatch")

    with pytest.raises(TransactionConflict) as exc_info:
        run_in_transaction(db_session, work, max_attempts=2)

    assert len(calls) == 2
    assert exc_info.value.attempts == 2


def test_business_errors_are_not_retried(db_session):
    calls = []

    def work(tx):
        calls.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        run_in_transaction(db_session, work)
    assert len(calls) == 1


def test_serialization_failures_are_retryable():
    serialization = DBAPIError("UPDATE products", None, _PgError("40001"))
    deadlock = DBAPIError("UPDATE products", None, _PgError("40P01"))
    unique = DBAPIError("INSERT INTO products", None, _PgError("23505"))

    assert is_retryable(serialization)
    assert is_retryable(deadlock)
    assert not is_retryable(unique)

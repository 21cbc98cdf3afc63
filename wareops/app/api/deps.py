from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Iterator

from fastapi import HTTPException

from wareops.app.db.session import SessionLocal
from wareops.services.errors import InsufficientStock, InvariantViolation, NotFound, TransactionConflict


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def service_errors() -> Iterator[None]:
    """Traduit les erreurs métier en HTTPException."""
    try:
        yield
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except InsufficientStock as exc:
        raise HTTPException(
            status_code=409,
            detail={
                "message": str(exc),
                "product": exc.product,
                "available": exc.available,
                "requested": exc.requested,
            },
        ) from exc
    except InvariantViolation as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except TransactionConflict as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

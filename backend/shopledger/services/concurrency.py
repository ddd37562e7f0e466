# Overview: Transaction boundary and locking helpers shared by the ledger services.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import PersistenceError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def atomic():
    """
    Run a block as one transaction: commit on success, roll back on any error.

    Domain errors are re-raised unchanged; storage failures surface as
    PersistenceError. Nothing is retried here.
    """
    try:
        yield db.session
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        raise PersistenceError("Record was modified concurrently; reload and try again") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceError(f"Transaction failed: {exc.__class__.__name__}") from exc
    except BaseException:
        db.session.rollback()
        raise

# Overview: Atomic-unit helpers for ledger writes: write locks, row locks, retry and error mapping.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from .errors import ConstraintError, StoreError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() covers it there.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Take the store's write lock before the first read of a read-modify-write.

    On SQLite this issues BEGIN IMMEDIATE so that two writers cannot both read
    the same balance or stock figure and then overwrite each other. Nothing is
    issued if the connection already has an open transaction (nested steps of
    a composed operation) or if the dialect locks rows itself.
    """
    if db.engine.dialect.name != "sqlite":
        return
    connection = db.session.connection()
    if connection.connection.dbapi_connection.in_transaction:
        return
    db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int | None = None, backoff_base: float | None = None):
    """
    Execute one atomic ledger unit, retrying on concurrency-related failures.

    Every failure rolls the session back before it propagates, so a caller
    that sees an exception can assume no statement of the unit survived.

    - OperationalError (locks, busy database) and StaleDataError (optimistic
      version conflicts) are retried with exponential backoff, then reported
      as StoreError.
    - IntegrityError is reported as ConstraintError without retry.
    - Anything else (including LedgerError) is re-raised unchanged.
    """
    if attempts is None:
        attempts = current_app.config.get("RETRY_ATTEMPTS", 3)
    if backoff_base is None:
        backoff_base = current_app.config.get("RETRY_BACKOFF_BASE", 0.1)

    for attempt in range(attempts):
        try:
            return func()
        except IntegrityError as exc:
            db.session.rollback()
            raise ConstraintError(
                "Constraint violation",
                details={"reason": str(exc.orig)},
            ) from exc
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                current_app.logger.error("Ledger write failed after %d attempts: %s", attempts, exc)
                raise StoreError(
                    "Store operation failed",
                    details={"reason": str(exc), "attempts": attempts},
                ) from exc
            current_app.logger.warning("Ledger write conflict (attempt %d): %s", attempt + 1, exc)
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise

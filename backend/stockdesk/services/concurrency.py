# Overview: Service-layer operations for concurrency; owns the write-transaction boundary.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import AppError, TransactionFailedError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() takes the
    database write lock there instead.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Start the write transaction before the first read.

    On SQLite this takes the RESERVED lock immediately, so a second writer
    blocks (and eventually retries) before it can read stale stock.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Retrying transaction after %s (attempt %d/%d)",
                type(exc).__name__, attempt + 1, attempts,
            )
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_transaction(func, *, action: str):
    """
    Run func as one all-or-nothing unit and commit its writes.

    - Business errors (AppError) roll back and propagate unchanged.
    - Anything else rolls back, is logged with its traceback and surfaces
      as TransactionFailedError("Failed to <action>").
    """
    def _op():
        begin_write()
        result = func()
        db.session.commit()
        return result

    try:
        return run_with_retry(
            _op,
            attempts=current_app.config.get("TX_RETRY_ATTEMPTS", 3),
            backoff_base=current_app.config.get("TX_RETRY_BACKOFF_SECONDS", 0.1),
        )
    except AppError:
        db.session.rollback()
        raise
    except Exception as exc:
        db.session.rollback()
        current_app.logger.exception("Transaction aborted while trying to %s", action)
        raise TransactionFailedError(f"Failed to {action}") from exc

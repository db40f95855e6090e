# Overview: Row locking and the retrying unit-of-work runner every command goes through.

from __future__ import annotations

import time

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ConflictError
from ..extensions import db

# Lock waits/deadlocks, optimistic version mismatches, and unique-key races
# (e.g. two commands allocating the same document number) are all resolved by
# rolling back and re-running the whole unit of work.
RETRYABLE_ERRORS = (OperationalError, StaleDataError, IntegrityError)


def lock_for_update(query):
    """
    Apply row-level locking for critical read-modify-write paths.

    populate_existing() refreshes rows already in the identity map so that
    guards are re-checked against the locked, current values.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; version_id columns and
    unique constraints still catch conflicting writes there.
    """
    return query.with_for_update().populate_existing()


def run_in_transaction(func, *, attempts: int = 3, backoff_base: float = 0.05):
    """
    Execute ``func`` as one all-or-nothing unit of work.

    - Success: flush + commit, return func's result.
    - Any exception: roll back, so no partial writes and no audit rows survive.
    - Concurrency conflicts are retried with exponential backoff. When
      retries run out, version and unique-key conflicts surface as
      ConflictError; lock errors are re-raised unchanged.
    """
    for attempt in range(attempts):
        try:
            result = func()
            db.session.commit()
            return result
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                if isinstance(exc, (IntegrityError, StaleDataError)):
                    raise ConflictError(
                        "The record was modified concurrently; please retry",
                    ) from exc
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise

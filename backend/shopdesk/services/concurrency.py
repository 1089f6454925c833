# Overview: Transaction boundary and retry helpers shared by the multi-table workflows.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking for read-modify-write of stock and balances.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; the version_id check on
    Product and CreditCustomer still catches lost updates there.
    """
    return query.with_for_update()


def run_in_transaction(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func() as one unit of work and commit it.

    Any exception rolls back everything func() wrote. Lock and optimistic
    version conflicts are retried with exponential backoff; everything else
    is re-raised on the first failure.
    """
    for attempt in range(attempts):
        try:
            result = func()
            db.session.commit()
            return result
        except RETRYABLE_ERRORS:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise

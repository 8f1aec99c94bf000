"""
Unit-of-work envelope for every ledger mutation.

Each mutation is one database transaction: it re-reads the rows it depends
on under row locks, re-validates, then writes. A rejection at any point
rolls the whole transaction back, so there is never anything to undo.

    with ledger_transaction("create_payment", receipt_id=7) as mutation:
        receipt = Receipt.objects.locked(7)
        ...                       # validate, raise LedgerRuleError to abort
        mutation.committing()     # all checks passed, writes follow
        Payment.objects.create(...)
"""
import enum
import logging
from contextlib import contextmanager

from django.conf import settings
from django.db import DatabaseError, connections, transaction

from ..exceptions import (LedgerRuleError, StorageConflictError,
                          StorageTimeoutError)

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE codes
PG_TIMEOUT_CODES = {
    "55P03",  # lock_not_available (lock_timeout)
    "57014",  # query_canceled (statement_timeout)
}
PG_CONFLICT_CODES = {
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
}
SQLITE_LOCKED_MESSAGES = ("database is locked", "database table is locked")


class MutationState(enum.Enum):
    VALIDATING = "validating"
    COMMITTING = "committing"
    COMMITTED = "committed"
    REJECTED = "rejected"


class LedgerMutation:
    """State of one mutation request: Validating → Committing → Committed | Rejected."""

    def __init__(self, operation, context=None):
        self.operation = operation
        self.context = dict(context or {})
        self.state = MutationState.VALIDATING
        self.error = None

    def committing(self):
        self.state = MutationState.COMMITTING

    def __repr__(self):
        return f"<LedgerMutation {self.operation} {self.state.value}>"


def _sqlstate(exc):
    # django wraps the driver error; psycopg 3 calls it sqlstate, psycopg2 pgcode
    cause = exc.__cause__
    return getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)


def translate_database_error(exc, operation=None):
    """
    Map a driver-level lock / serialization failure onto the ledger's
    storage errors. Returns None for anything else (which is re-raised as is).
    """
    code = _sqlstate(exc)
    if code in PG_TIMEOUT_CODES:
        return StorageTimeoutError(f"{operation}: timed out waiting for a lock", operation)
    if code in PG_CONFLICT_CODES:
        return StorageConflictError(f"{operation}: concurrent update conflict", operation)
    message = str(exc).lower()
    if any(m in message for m in SQLITE_LOCKED_MESSAGES):
        return StorageTimeoutError(f"{operation}: timed out waiting for the database lock", operation)
    return None


def _set_lock_timeout(using):
    connection = connections[using]
    if connection.vendor != "postgresql":
        # sqlite: BEGIN IMMEDIATE + the connection's busy timeout do the job
        return
    timeout_ms = getattr(settings, "LEDGER_LOCK_TIMEOUT_MS", 5000)
    with connection.cursor() as cursor:
        # set_config(..., true) is SET LOCAL: it ends with the transaction
        cursor.execute("SELECT set_config('lock_timeout', %s, true)", [f"{int(timeout_ms)}ms"])


@contextmanager
def ledger_transaction(operation, using="default", **context):
    mutation = LedgerMutation(operation, context)
    try:
        # Everything inside either commits as one unit or rolls back
        with transaction.atomic(using=using):
            _set_lock_timeout(using)
            yield mutation
            mutation.committing()
    except LedgerRuleError as exc:
        mutation.state = MutationState.REJECTED
        mutation.error = exc
        logger.info("%s rejected (%s): %s %s", operation, exc.code, exc.data, mutation.context)
        raise
    except DatabaseError as exc:
        mutation.state = MutationState.REJECTED
        storage_error = translate_database_error(exc, operation)
        if storage_error is None:
            mutation.error = exc
            raise
        mutation.error = storage_error
        logger.warning("%s aborted (%s): %s", operation, storage_error.code, mutation.context)
        raise storage_error from exc
    except Exception as exc:
        mutation.state = MutationState.REJECTED
        mutation.error = exc
        raise
    mutation.state = MutationState.COMMITTED
    logger.info("%s committed %s", operation, mutation.context)

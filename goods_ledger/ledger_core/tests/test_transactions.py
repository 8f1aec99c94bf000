from decimal import Decimal

from django.db import IntegrityError, OperationalError
from django.test import SimpleTestCase, TestCase

from ..exceptions import (AmountExceedsRemainingError, StorageConflictError,
                          StorageTimeoutError)
from ..models import Account
from ..services.transactions import (MutationState, ledger_transaction,
                                     translate_database_error)


class FakeDriverError(Exception):
    def __init__(self, sqlstate):
        super().__init__(sqlstate)
        self.sqlstate = sqlstate


class FakePsycopg2Error(Exception):
    pgcode = "40P01"


def wrapped(message, cause=None):
    exc = OperationalError(message)
    exc.__cause__ = cause
    return exc


class TranslateDatabaseErrorTests(SimpleTestCase):
    def test_lock_timeouts(self):
        for code in ("55P03", "57014"):
            err = translate_database_error(wrapped("x", FakeDriverError(code)), "op")
            self.assertIsInstance(err, StorageTimeoutError)
            self.assertEqual(err.operation, "op")
        err = translate_database_error(wrapped("database is locked"), "op")
        self.assertIsInstance(err, StorageTimeoutError)

    def test_conflicts(self):
        err = translate_database_error(wrapped("x", FakeDriverError("40001")))
        self.assertIsInstance(err, StorageConflictError)
        err = translate_database_error(wrapped("x", FakePsycopg2Error()))
        self.assertIsInstance(err, StorageConflictError)
        self.assertEqual(err.code, "storage_conflict")

    def test_other_errors_pass_through(self):
        self.assertIsNone(translate_database_error(wrapped("no such table: foo")))
        self.assertIsNone(translate_database_error(IntegrityError("UNIQUE constraint failed")))


class LedgerTransactionTests(TestCase):
    def test_commit_states(self):
        with ledger_transaction("probe", answer=42) as mutation:
            self.assertEqual(mutation.state, MutationState.VALIDATING)
            mutation.committing()
            self.assertEqual(mutation.state, MutationState.COMMITTING)
            Account.objects.create(name="Committed")
        self.assertEqual(mutation.state, MutationState.COMMITTED)
        self.assertEqual(mutation.context, {"answer": 42})
        self.assertTrue(Account.objects.filter(name="Committed").exists())

    def test_business_rejection_rolls_back(self):
        with self.assertRaises(AmountExceedsRemainingError):
            with ledger_transaction("probe") as mutation:
                Account.objects.create(name="Never")
                raise AmountExceedsRemainingError("too much", remaining=Decimal("1.00"))
        self.assertEqual(mutation.state, MutationState.REJECTED)
        self.assertIsInstance(mutation.error, AmountExceedsRemainingError)
        self.assertFalse(Account.objects.filter(name="Never").exists())

    def test_lock_timeout_surfaces_as_storage_timeout(self):
        with self.assertRaises(StorageTimeoutError) as ctx:
            with ledger_transaction("probe") as mutation:
                Account.objects.create(name="Never")
                raise OperationalError("database is locked")
        self.assertEqual(mutation.state, MutationState.REJECTED)
        self.assertIsInstance(ctx.exception.__cause__, OperationalError)
        self.assertFalse(Account.objects.filter(name="Never").exists())

    def test_rule_error_payload(self):
        err = AmountExceedsRemainingError(
            "too much", receipt_id=3, requested=Decimal("5.00"), remaining=Decimal("1.00"))
        self.assertEqual(err.as_dict(), {
            "code": "amount_exceeds_remaining",
            "message": "too much",
            "receipt_id": "3",
            "requested": "5.00",
            "remaining": "1.00",
        })

from django.core.exceptions import PermissionDenied
from django.test import TestCase

from ..exceptions import AccountInUseError
from ..models import Account
from ..services import (Capability, create_account, delete_account,
                        delete_receipt, update_account)
from .base import ADMIN, LedgerFixtures


class AccountMaintenanceTests(LedgerFixtures, TestCase):
    def test_create_and_update(self):
        account = create_account("Kirana Stores", kind="creditor",
                                 contact_info="98450 00000", capability=ADMIN)
        update_account(account.pk, address="MG Road", capability=Capability.manager())
        account.refresh_from_db()
        self.assertEqual(account.address, "MG Road")
        self.assertEqual(account.kind, "creditor")

    def test_update_rejects_unknown_fields(self):
        account = create_account("Kirana Stores", capability=ADMIN)
        with self.assertRaises(TypeError):
            update_account(account.pk, balance=100, capability=ADMIN)

    def test_delete_blocked_while_receipts_exist(self):
        account = create_account("Kirana Stores", capability=ADMIN)
        receipt = self.stock_in(account, "Rice", "10")

        with self.assertRaises(AccountInUseError) as ctx:
            delete_account(account.pk, capability=ADMIN)
        self.assertEqual(ctx.exception.account_id, account.pk)
        self.assertTrue(Account.objects.filter(pk=account.pk).exists())

        delete_receipt(receipt.pk, capability=ADMIN)
        delete_account(account.pk, capability=ADMIN)
        self.assertFalse(Account.objects.filter(pk=account.pk).exists())

    def test_only_admin_deletes(self):
        account = create_account("Kirana Stores", capability=ADMIN)
        with self.assertRaises(PermissionDenied):
            delete_account(account.pk, capability=Capability.manager())

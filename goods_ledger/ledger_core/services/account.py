from ..exceptions import AccountInUseError
from ..models import Account, Payment, Receipt
from .access import Capability
from .transactions import ledger_transaction

UPDATABLE_FIELDS = ("name", "kind", "contact_info", "address")


def create_account(name, kind="debitor", contact_info="", address="", *, capability: Capability):
    capability.require("create")
    with ledger_transaction("create_account", name=name):
        return Account.objects.create(
            name=name, kind=kind, contact_info=contact_info, address=address)


def update_account(account_id, *, capability: Capability, **fields):
    capability.require("update")
    unknown = set(fields) - set(UPDATABLE_FIELDS)
    if unknown:
        raise TypeError(f"Cannot update account fields: {sorted(unknown)}")

    with ledger_transaction("update_account", account_id=account_id):
        account = Account.objects.select_for_update().get(pk=account_id)
        for field, value in fields.items():
            setattr(account, field, value)
        account.save()
    return account


""" Block deleting accounts that still own receipts or payments """


def delete_account(account_id, *, capability: Capability):
    capability.require("delete")
    with ledger_transaction("delete_account", account_id=account_id) as mutation:
        account = Account.objects.select_for_update().get(pk=account_id)
        if (Receipt.objects.for_account(account).exists()
                or Payment.objects.for_account(account).exists()):
            raise AccountInUseError(
                f"Cannot delete account {account} with receipts or payments.",
                account_id=account.pk,
            )
        mutation.committing()
        account.delete()

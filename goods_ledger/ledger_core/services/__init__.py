# Service boundary of the ledger core: the only functions that write.
from .access import Capability
from .account import create_account, delete_account, update_account
from .balance import (AccountBalance, ReceiptBalance, account_balance,
                      get_account_balance, get_receipt_balance,
                      list_account_balances, receipt_balance)
from .inventory import check_availability, get_available, list_inventory
from .payment import create_payment, delete_payment, update_payment
from .receipt import create_receipt, delete_receipt, update_receipt
from .totals import LineItem, line_total, receipt_total

__all__ = [
    "AccountBalance",
    "Capability",
    "LineItem",
    "ReceiptBalance",
    "account_balance",
    "check_availability",
    "create_account",
    "create_payment",
    "create_receipt",
    "delete_account",
    "delete_payment",
    "delete_receipt",
    "get_account_balance",
    "get_available",
    "get_receipt_balance",
    "line_total",
    "list_account_balances",
    "list_inventory",
    "receipt_balance",
    "receipt_total",
    "update_account",
    "update_payment",
    "update_receipt",
]

from .account import Account
from .inventory import InventoryLine
from .payment import Payment
from .receipt import Receipt, ReceiptLine

from .auth import User, SessionToken
from .inventory import InventoryItem, Supplier
from .sales import Sale, SaleLine, ReceiptSequence
from .finance import CashDrawerEntry, Expense
from .tax import TaxRecord, TaxSettings
from .settings import BusinessSettings

__all__ = [
    'User', 'SessionToken',
    'InventoryItem', 'Supplier',
    'Sale', 'SaleLine', 'ReceiptSequence',
    'CashDrawerEntry', 'Expense',
    'TaxRecord', 'TaxSettings',
    'BusinessSettings',
]

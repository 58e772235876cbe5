from .ledger import Category, Transaction, TRANSACTION_TYPES
from .inventory import Product, InventoryLog, STOCK_DIRECTIONS

__all__ = [
    'Category', 'Transaction', 'TRANSACTION_TYPES',
    'Product', 'InventoryLog', 'STOCK_DIRECTIONS',
]

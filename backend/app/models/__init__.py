from .sales import Transaction, SellHistory
from .catalog import Category, Product, Service
from .debits import Debit, DebitItem
from .expenses import DailyExpense, SupplyExpense

__all__ = [
    'Category', 'Product', 'Service',
    'Transaction', 'SellHistory',
    'Debit', 'DebitItem',
    'DailyExpense', 'SupplyExpense',
]

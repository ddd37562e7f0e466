from .inventory import Product
from .billing import (
    Bill,
    BillItem,
    SaleSnapshot,
    BILL_STATUS_PAID,
    BILL_STATUS_PARTIAL,
    BILL_STATUS_RETURNED,
    BILL_STATUSES,
)
from .reporting import MonthlySnapshot

__all__ = [
    'Product',
    'Bill', 'BillItem', 'SaleSnapshot',
    'BILL_STATUS_PAID', 'BILL_STATUS_PARTIAL', 'BILL_STATUS_RETURNED', 'BILL_STATUSES',
    'MonthlySnapshot',
]

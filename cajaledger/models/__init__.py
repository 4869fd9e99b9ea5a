from .base import Base
from .auth import User
from .inventory import MovementType, Product, StockMovement
from .registers import CashRegisterRecord

__all__ = [
    'Base',
    'User',
    'MovementType', 'Product', 'StockMovement',
    'CashRegisterRecord',
]

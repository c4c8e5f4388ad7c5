from .catalog import Product
from .clients import Client
from .orders import Order, OrderItem
from .inventory import StockMovement
from .auth import User

__all__ = [
    'Product',
    'Client',
    'Order', 'OrderItem',
    'StockMovement',
    'User',
]

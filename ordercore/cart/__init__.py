"""Cart package: server snapshot models and the write-through synchronizer."""
from ordercore.api.schemas import CartItem, CartSnapshot, CustomMealSelection
from .service import CartSynchronizer

__all__ = [
    "CartItem",
    "CartSnapshot",
    "CustomMealSelection",
    "CartSynchronizer",
]

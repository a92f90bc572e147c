"""Cart package: item models, identity, pricing, storage and the aggregate."""
from .models import CartItem, SubItem
from .coupons import Coupon, FixedCoupon, PercentageCoupon, register_coupon
from .storage import KeyValueStore, MemoryStore, RedisStore
from .service import Cart, create_cart

__all__ = [
    "CartItem",
    "SubItem",
    "Coupon",
    "FixedCoupon",
    "PercentageCoupon",
    "register_coupon",
    "KeyValueStore",
    "MemoryStore",
    "RedisStore",
    "Cart",
    "create_cart",
]

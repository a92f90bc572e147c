"""
shopcart - session cart with identity hashing and Decimal pricing.

This package contains:
- cart: cart aggregate, item models, identity hashing, pricing, coupons
- config: environment settings
- db: Upstash Redis client
- realtime: cart event bus
- services: money helpers and formatting

Note: Imports are lazy so configuring logging or settings does not pull in
the Redis client.
"""

__all__ = [
    "Cart",
    "CartItem",
    "CartSettings",
    "create_cart",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "Cart":
        from shopcart.cart import Cart
        return Cart
    if name == "CartItem":
        from shopcart.cart import CartItem
        return CartItem
    if name == "CartSettings":
        from shopcart.config import CartSettings
        return CartSettings
    if name == "create_cart":
        from shopcart.cart import create_cart
        return create_cart
    raise AttributeError(f"module 'shopcart' has no attribute '{name}'")

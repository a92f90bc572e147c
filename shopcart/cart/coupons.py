"""
Coupons - discount capabilities applied to a cart.

The cart only calls `discount(cart)` and aggregates the returned amounts.
Concrete coupon kinds register themselves under a type tag so applied
coupons can be persisted with the cart and restored.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Dict, Mapping, Optional, Type

from shopcart.errors import CartError
from shopcart.services.money import percent, round_money, to_decimal

if TYPE_CHECKING:
    from shopcart.cart.service import Cart

_COUPON_TYPES: Dict[str, Type["Coupon"]] = {}


def register_coupon(type_name: str) -> Callable[[Type["Coupon"]], Type["Coupon"]]:
    """Class decorator registering a coupon kind for persistence."""
    def decorator(cls: Type["Coupon"]) -> Type["Coupon"]:
        cls.type_name = type_name
        _COUPON_TYPES[type_name] = cls
        return cls
    return decorator


def coupon_from_dict(data: Mapping) -> "Coupon":
    """Restore a persisted coupon by its type tag."""
    type_name = data.get("type")
    coupon_cls = _COUPON_TYPES.get(type_name)
    if coupon_cls is None:
        raise CartError(f"Unknown coupon type: {type_name!r}", code="UNKNOWN_COUPON")
    return coupon_cls.from_dict(data)


def is_registered(coupon: "Coupon") -> bool:
    """True when this coupon's exact class can be restored by `coupon_from_dict`."""
    coupon_cls = type(coupon)
    return _COUPON_TYPES.get(coupon_cls.type_name) is coupon_cls


class Coupon(ABC):
    """A discount capability. Implementations must be serializable."""

    type_name: str = ""

    def __init__(self, code: str, description: Optional[str] = None):
        self.code = code
        self.description = description

    @abstractmethod
    def discount(self, cart: "Cart") -> Decimal:
        """Amount to take off the cart total."""

    def to_dict(self) -> dict:
        return {"type": self.type_name, "code": self.code, "description": self.description}

    @classmethod
    def from_dict(cls, data: Mapping) -> "Coupon":
        return cls(code=data["code"], description=data.get("description"))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r})"


@register_coupon("fixed")
class FixedCoupon(Coupon):
    """Takes a fixed amount off the cart."""

    def __init__(self, code: str, amount, description: Optional[str] = None):
        super().__init__(code, description)
        self.amount = round_money(amount)

    def discount(self, cart: "Cart") -> Decimal:
        return self.amount

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["amount"] = str(self.amount)
        return data

    @classmethod
    def from_dict(cls, data: Mapping) -> "FixedCoupon":
        return cls(code=data["code"], amount=data["amount"], description=data.get("description"))


@register_coupon("percentage")
class PercentageCoupon(Coupon):
    """Takes a percentage of the tax-inclusive subtotal off the cart."""

    def __init__(self, code: str, percent_off, description: Optional[str] = None):
        super().__init__(code, description)
        self.percent_off = to_decimal(percent_off)
        if self.percent_off < 0 or self.percent_off > 100:
            raise CartError("percent_off must be between 0 and 100", code="INVALID_COUPON")

    def discount(self, cart: "Cart") -> Decimal:
        return round_money(percent(cart.sub_total(include_tax=True), self.percent_off))

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["percent_off"] = str(self.percent_off)
        return data

    @classmethod
    def from_dict(cls, data: Mapping) -> "PercentageCoupon":
        return cls(code=data["code"], percent_off=data["percent_off"], description=data.get("description"))

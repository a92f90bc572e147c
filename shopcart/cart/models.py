"""Cart item models with Decimal-based pricing."""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Collection, Dict, List, Mapping, Optional, Union

from shopcart.cart import identity
from shopcart.cart.paths import set_path, split_path
from shopcart.errors import (
    InvalidItemError,
    InvalidQuantityError,
    ERROR_ITEM_FIELD_UNKNOWN,
    ERROR_ITEM_ID_REQUIRED,
    ERROR_ITEM_PRICE_INVALID,
    ERROR_ITEM_PRICE_REQUIRED,
)
from shopcart.services.money import ZERO, add, multiply, round_money, to_decimal

ItemId = Union[str, int]

# Accepted spellings for update() field names
_FIELD_ALIASES = {
    "price": "unit_price",
    "qty": "quantity",
    "tax": "tax_rate",
    "lineItem": "line_item",
    "subItems": "sub_items",
}
_SCALAR_FIELDS = {"id", "name", "quantity", "unit_price", "taxable", "line_item", "tax_rate", "sub_items"}
_MAPPING_FIELDS = {"options", "attributes"}


def _validate_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantityError(quantity)
    return quantity


def _parse_price(price: Any) -> Decimal:
    if price is None or (isinstance(price, str) and not price.strip()):
        raise InvalidItemError(ERROR_ITEM_PRICE_REQUIRED)
    try:
        value = to_decimal(price, strict=True)
    except InvalidOperation:
        raise InvalidItemError(f"{ERROR_ITEM_PRICE_INVALID}: {price!r}")
    if value < 0:
        raise InvalidItemError(f"{ERROR_ITEM_PRICE_INVALID}: {price!r}")
    return round_money(value)


def _parse_rate(rate: Any) -> Optional[Decimal]:
    if rate is None:
        return None
    try:
        value = to_decimal(rate, strict=True)
    except InvalidOperation:
        raise InvalidItemError(f"Invalid tax rate: {rate!r}")
    if value < 0:
        raise InvalidItemError(f"Invalid tax rate: {rate!r}")
    return value


def _validate_id(item_id: Any) -> ItemId:
    if item_id is None or isinstance(item_id, bool) or (isinstance(item_id, str) and not item_id.strip()):
        raise InvalidItemError(ERROR_ITEM_ID_REQUIRED)
    if not isinstance(item_id, (str, int)):
        raise InvalidItemError(f"Item id must be a string or integer: {item_id!r}")
    return item_id


def _as_dict(value: Any, field_name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidItemError(f"Item {field_name} must be a mapping")
    return dict(value)


def _line_subtotal(unit_price: Decimal, quantity: int, taxable: bool, rate: Decimal, include_tax: bool) -> Decimal:
    total = multiply(unit_price, quantity)
    if include_tax and taxable:
        total = add(total, multiply(total, rate))
    return total


@dataclass
class SubItem:
    """
    Nested add-on of a cart item (gift wrap, engraving, bundle part).

    Contributes to its parent's subtotal; never merged or counted on its own.
    """
    name: Optional[str] = None
    unit_price: Decimal = ZERO
    quantity: int = 1
    taxable: bool = True
    options: Dict[str, Any] = field(default_factory=dict)
    tax_rate: Optional[Decimal] = None
    items: List["SubItem"] = field(default_factory=list)

    def __post_init__(self):
        self.unit_price = _parse_price(self.unit_price)
        self.quantity = _validate_quantity(self.quantity)
        self.tax_rate = _parse_rate(self.tax_rate)
        self.options = _as_dict(self.options, "options")
        self.items = [SubItem.coerce(sub) for sub in self.items or []]

    @classmethod
    def coerce(cls, value: Union["SubItem", Mapping]) -> "SubItem":
        if isinstance(value, SubItem):
            return value
        if isinstance(value, Mapping):
            return cls.from_dict(value)
        raise InvalidItemError(f"Invalid sub-item: {value!r}")

    def subtotal(self, include_tax: bool = False, tax_rate: Optional[Decimal] = None) -> Decimal:
        """Own line plus nested sub-items. Falls back to the parent's rate."""
        rate = self.tax_rate if self.tax_rate is not None else to_decimal(tax_rate)
        total = _line_subtotal(self.unit_price, self.quantity, self.taxable, rate, include_tax)
        for sub in self.items:
            total = add(total, sub.subtotal(include_tax, rate))
        return total

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "taxable": self.taxable,
            "options": self.options,
            "tax_rate": None if self.tax_rate is None else str(self.tax_rate),
            "items": [sub.to_dict() for sub in self.items],
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "SubItem":
        return cls(
            name=data.get("name"),
            unit_price=data.get("unit_price", data.get("price", "0")),
            quantity=data.get("quantity", 1),
            taxable=bool(data.get("taxable", True)),
            options=data.get("options") or {},
            tax_rate=data.get("tax_rate"),
            items=list(data.get("items") or []),
        )


@dataclass
class CartItem:
    """
    Single line in the cart.

    Identity (see shopcart.cart.identity) covers id, name, unit_price and
    options. Quantity, tax settings, sub-items and attributes do not affect
    the hash. `item_hash` is assigned by generate_hash() and is the key the
    cart stores the item under.
    """
    id: ItemId
    name: Optional[str] = None
    quantity: int = 1
    unit_price: Decimal = None
    options: Dict[str, Any] = field(default_factory=dict)
    sub_items: List[SubItem] = field(default_factory=list)
    taxable: bool = True
    line_item: bool = False
    attributes: Dict[str, Any] = field(default_factory=dict)
    tax_rate: Optional[Decimal] = None
    item_hash: Optional[str] = None

    def __post_init__(self):
        self.id = _validate_id(self.id)
        self.unit_price = _parse_price(self.unit_price)
        self.quantity = _validate_quantity(self.quantity)
        self.tax_rate = _parse_rate(self.tax_rate)
        self.options = _as_dict(self.options, "options")
        self.attributes = _as_dict(self.attributes, "attributes")
        self.sub_items = [SubItem.coerce(sub) for sub in self.sub_items or []]

    # Identity

    def compute_hash(self) -> str:
        """Unsalted identity hash of the current fields (not assigned)."""
        return identity.item_hash(self.id, self.name, self.unit_price, self.options)

    def generate_hash(
        self,
        force_unique: bool = False,
        taken: Collection[str] = (),
        max_attempts: int = identity.DEFAULT_MAX_ATTEMPTS,
    ) -> str:
        """
        Compute and assign this item's hash.

        Args:
            force_unique: Salt the hash until it is not in `taken`
            taken: Hashes already used in the cart
            max_attempts: Bound of the salted loop

        Raises:
            HashGenerationError: force_unique could not find a free hash
        """
        if force_unique:
            self.item_hash = identity.unique_item_hash(
                self.id, self.name, self.unit_price, self.options,
                taken=taken, max_attempts=max_attempts,
            )
        else:
            self.item_hash = self.compute_hash()
        return self.item_hash

    # Mutation

    def update(self, path: str, value: Any) -> None:
        """
        Set a field by name or dotted path ("quantity", "options.size",
        "attributes.gift.note").

        The hash is not re-derived; callers re-key the item afterwards when
        an identity field changed.
        """
        segments = split_path(path)
        head = _FIELD_ALIASES.get(segments[0], segments[0])

        if head in _MAPPING_FIELDS:
            if len(segments) == 1:
                setattr(self, head, _as_dict(value, head))
            else:
                set_path(getattr(self, head), ".".join(segments[1:]), value)
            return

        if head not in _SCALAR_FIELDS or len(segments) > 1:
            raise InvalidItemError(f"{ERROR_ITEM_FIELD_UNKNOWN}: {path}")

        if head == "id":
            value = _validate_id(value)
        elif head == "quantity":
            value = _validate_quantity(value)
        elif head == "unit_price":
            value = _parse_price(value)
        elif head == "tax_rate":
            value = _parse_rate(value)
        elif head in ("taxable", "line_item"):
            value = bool(value)
        elif head == "sub_items":
            value = [SubItem.coerce(sub) for sub in value or []]
        setattr(self, head, value)

    # Pricing

    @property
    def effective_tax_rate(self) -> Decimal:
        return self.tax_rate if self.tax_rate is not None else ZERO

    def subtotal(self, include_tax: bool = False) -> Decimal:
        """unit_price * quantity, plus tax when requested and taxable."""
        return _line_subtotal(self.unit_price, self.quantity, self.taxable, self.effective_tax_rate, include_tax)

    def sub_items_total(self, include_tax: bool = False) -> Decimal:
        """Sum of every sub-item's own subtotal, summed as-is."""
        total = ZERO
        for sub in self.sub_items:
            total = add(total, sub.subtotal(include_tax, self.effective_tax_rate))
        return total

    # Serialization

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "id": self.id,
            "hash": self.item_hash,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "options": self.options,
            "sub_items": [sub.to_dict() for sub in self.sub_items],
            "taxable": self.taxable,
            "line_item": self.line_item,
            "attributes": self.attributes,
            "tax_rate": None if self.tax_rate is None else str(self.tax_rate),
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "CartItem":
        """Create from dictionary. The stored hash is kept as-is."""
        return cls(
            id=data["id"],
            name=data.get("name"),
            quantity=int(data["quantity"]),
            unit_price=data["unit_price"],
            options=data.get("options") or {},
            sub_items=list(data.get("sub_items") or []),
            taxable=bool(data.get("taxable", True)),
            line_item=bool(data.get("line_item", False)),
            attributes=data.get("attributes") or {},
            tax_rate=data.get("tax_rate"),
            item_hash=data.get("hash"),
        )

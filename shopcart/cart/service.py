"""Cart aggregate: item set, coupons and attributes of one named instance."""
import copy
import json
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from shopcart.cart import pricing
from shopcart.cart.coupons import Coupon, coupon_from_dict, is_registered
from shopcart.cart.models import CartItem, ItemId
from shopcart.cart.paths import forget_path, get_path, set_path
from shopcart.cart.storage import KeyValueStore, RedisStore
from shopcart.config import CartSettings
from shopcart.db import RedisKeys
from shopcart.errors import CartError, CartStorageError, ItemNotFoundError, ERROR_STORAGE_UNAVAILABLE
from shopcart.logging import get_logger, log_safe
from shopcart.realtime import CartEvents, EventBus, attach_stream
from shopcart.services.currency import MoneyFormatter
from shopcart.services.money import ZERO, subtract, to_float

logger = get_logger(__name__)

Amount = Union[Decimal, str]


class Cart:
    """
    Shopping cart for one named instance ("default", "wishlist", ...).

    State is loaded from the key-value store when the instance is selected
    and written back in full after every mutation, then observers are
    notified. Items are keyed by their identity hash and kept in insertion
    order.
    """

    def __init__(
        self,
        store: KeyValueStore,
        instance: Optional[str] = None,
        settings: Optional[CartSettings] = None,
        events: Optional[EventBus] = None,
        formatter: Optional[MoneyFormatter] = None,
    ):
        self.settings = settings or CartSettings()
        self.store = store
        self.events = events or EventBus()
        self.formatter = formatter or MoneyFormatter(self.settings.currency)

        self.tax_rate: Decimal = self.settings.tax_rate
        self.locale: str = self.settings.locale
        self.international_format: bool = self.settings.international_format

        self._instance: Optional[str] = None
        self._items: List[CartItem] = []
        self._coupons: List[Coupon] = []
        self._attributes: Dict[str, Any] = {}

        if instance is None:
            instance = self._read(self.settings.instance_key) or self.settings.default_instance
        self.set_instance(instance)

    @property
    def instance(self) -> str:
        return self._instance

    # Persistence

    def _state_key(self) -> str:
        return RedisKeys.cart_key(self._instance, prefix=self.settings.key_prefix)

    def _read(self, key: str) -> Optional[str]:
        try:
            return self.store.get(key)
        except Exception as e:
            logger.error(f"Failed to read cart state: {e}")
            raise CartStorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

    def _write(self, key: str, value: str) -> None:
        try:
            self.store.set(key, value)
        except Exception as e:
            logger.error(f"Failed to write cart state: {e}")
            raise CartStorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

    def _delete(self, key: str) -> None:
        try:
            self.store.delete(key)
        except Exception as e:
            logger.error(f"Failed to delete cart state: {e}")
            raise CartStorageError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e

    def _reset(self) -> None:
        self._items = []
        self._coupons = []
        self._attributes = {}

    def _load(self) -> None:
        key = self._state_key()
        self._reset()
        raw = self._read(key)
        if not raw:
            return

        try:
            data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
            items = [CartItem.from_dict(item) for item in data.get("items") or []]
            coupons = self._load_coupons(data.get("coupons") or [])
            attributes = data.get("attributes") or {}
            if not isinstance(attributes, dict):
                raise TypeError("attributes must be a mapping")
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError, CartError) as e:
            # Corrupted data - clear it and start empty
            logger.warning(f"Corrupted cart data for instance {log_safe(self._instance)}: {e}")
            self._delete(key)
            return

        self._items = items
        self._coupons = coupons
        self._attributes = attributes

    def _load_coupons(self, raw_coupons: list) -> List[Coupon]:
        coupons = []
        for raw in raw_coupons:
            try:
                coupons.append(coupon_from_dict(raw))
            except (CartError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable coupon in cart {log_safe(self._instance)}: {e}")
        return coupons

    def _persist(self) -> None:
        self._write(self._state_key(), json.dumps(self.to_dict(), default=str))
        self._notify(CartEvents.UPDATED, self)

    def _notify(self, event: str, payload: Any = None) -> None:
        try:
            self.events.emit(event, payload)
        except Exception as e:
            logger.warning(f"Failed to emit {event}: {e}", exc_info=True)

    def to_dict(self) -> dict:
        """Persisted layout of the instance."""
        return {
            "items": [item.to_dict() for item in self._items],
            "coupons": [coupon.to_dict() for coupon in self._coupons],
            "attributes": self._attributes,
        }

    # Instance

    def set_instance(self, instance: str = "default") -> None:
        """Switch to another named cart, loading its persisted state."""
        if not isinstance(instance, str) or not instance.strip():
            raise CartError(f"Invalid cart instance: {instance!r}", code="INVALID_INSTANCE")

        self._instance = instance
        self._load()
        self._write(self.settings.instance_key, instance)

        logger.debug(f"Cart instance set to {log_safe(instance)}")
        self._notify(CartEvents.NEW, instance)

    # Items

    def add(
        self,
        item_id: ItemId,
        name: Optional[str] = None,
        quantity: int = 1,
        price: Any = None,
        options: Optional[dict] = None,
        **fields: Any,
    ) -> CartItem:
        """Build a CartItem and add it, merging with an identical item."""
        return self.add_item(CartItem(
            id=item_id, name=name, quantity=quantity, unit_price=price,
            options=options or {}, line_item=False, **fields,
        ))

    def add_line(
        self,
        item_id: ItemId,
        name: Optional[str] = None,
        quantity: int = 1,
        price: Any = None,
        options: Optional[dict] = None,
        **fields: Any,
    ) -> CartItem:
        """Build a CartItem and add it as its own line, never merged."""
        return self.add_item(CartItem(
            id=item_id, name=name, quantity=quantity, unit_price=price,
            options=options or {}, line_item=True, **fields,
        ))

    def add_item(self, item: CartItem) -> CartItem:
        """
        Add an item to the cart.

        An identical non-line item bumps the existing item's quantity. Line
        items always get a salted hash, so neither side of a merge is ever a
        line item.

        Returns:
            The stored item (the existing one when merged)

        Raises:
            HashGenerationError: salted hash could not be made unique
        """
        if any(stored is item for stored in self._items):
            item = copy.deepcopy(item)
        if item.tax_rate is None:
            item.tax_rate = self.tax_rate

        item_hash = item.generate_hash()
        existing = self.get_item(item_hash)

        if existing is not None and not item.line_item and not existing.line_item:
            existing.quantity += item.quantity
            result = existing
        else:
            if item.line_item or existing is not None:
                item.generate_hash(
                    force_unique=True,
                    taken=self.get_items().keys(),
                    max_attempts=self.settings.hash_max_attempts,
                )
            self._items.append(item)
            result = item

        logger.debug(
            f"Added {item.quantity}x {log_safe(item.id, limit=50)} "
            f"as {log_safe(result.item_hash)}"
        )
        self._persist()
        self._notify(CartEvents.ITEM_ADDED, result)
        return result

    def get_items(self) -> Dict[str, CartItem]:
        """Items keyed by hash, in insertion order."""
        return {item.item_hash: item for item in self._items}

    def get_item(self, item_hash: str) -> Optional[CartItem]:
        for item in self._items:
            if item.item_hash == item_hash:
                return item
        return None

    def remove_item(self, item_hash: str) -> Optional[CartItem]:
        """Remove the item with this hash. Missing hashes are a no-op."""
        removed = None
        for index, item in enumerate(self._items):
            if item.item_hash == item_hash:
                removed = self._items.pop(index)
                break

        self._persist()
        self._notify(CartEvents.ITEM_REMOVED, item_hash)
        return removed

    def update_item(self, item_hash: str, field: str, value: Any) -> str:
        """
        Set a field on an item and return the hash it now resolves to.

        The item stays stored under its current hash; call update_item_hash()
        to re-key it after an identity change.

        Raises:
            ItemNotFoundError: no item with this hash
        """
        item = self.get_item(item_hash)
        if item is None:
            raise ItemNotFoundError(item_hash)

        item.update(field, value)
        new_hash = item.compute_hash()

        self._persist()
        self._notify(CartEvents.ITEM_UPDATED, {"item": item, "new_hash": new_hash})
        return new_hash

    def update_item_hash(self, item_hash: str) -> CartItem:
        """
        Re-key an item under its freshly computed hash.

        The item is removed and added again, so it merges into another item
        that now has the same identity.

        Raises:
            ItemNotFoundError: no item with this hash
        """
        item = self.get_item(item_hash)
        if item is None:
            raise ItemNotFoundError(item_hash)

        self._notify(CartEvents.UPDATING_HASH, item_hash)
        self.remove_item(item_hash)
        return self.add_item(item)

    def update_item_hashes(self) -> None:
        """Re-key every item. Hashes are snapshotted before any re-add."""
        for item_hash in list(self.get_items()):
            if self.get_item(item_hash) is None:
                continue
            self.update_item_hash(item_hash)

    def empty_cart(self) -> None:
        """Remove all items; coupons and attributes stay."""
        self._items = []
        self._persist()
        self._notify(CartEvents.EMPTIED, self._instance)

    def destroy_cart(self) -> None:
        """Drop everything stored for this instance."""
        self._reset()
        self._delete(self._state_key())
        self._notify(CartEvents.DESTROYED, self._instance)

    # Pricing

    def _format(self, amount: Decimal) -> str:
        return self.formatter.format(amount, self.locale, self.international_format)

    def count(self, with_quantity: bool = True) -> int:
        """Total quantity, or number of distinct lines."""
        return pricing.count(self._items, with_quantity)

    def sub_total(self, include_tax: bool = False, formatted: bool = False) -> Amount:
        amount = pricing.sub_total(self._items, include_tax)
        return self._format(amount) if formatted else amount

    def tax(self, formatted: bool = False) -> Amount:
        amount = subtract(pricing.sub_total(self._items, True), pricing.sub_total(self._items, False))
        return self._format(amount) if formatted else amount

    def get_total_discount(self, formatted: bool = False) -> Amount:
        amount = pricing.total_discount(self._coupons, self)
        return self._format(amount) if formatted else amount

    def total(self, with_discount: bool = True, formatted: bool = False) -> Amount:
        """
        Tax-inclusive subtotal minus coupon discounts.

        Unformatted amounts are exact Decimals and are not rounded, so tax
        math can leave extra places (Decimal("22.0000") for 20.00 at 10%).
        Only the formatted string is rounded to the currency's precision.
        """
        discount = self.get_total_discount() if with_discount else ZERO
        amount = pricing.total(self.sub_total(include_tax=True), discount, clamp=self.settings.clamp_total)
        return self._format(amount) if formatted else amount

    # Coupons

    def apply_coupon(self, coupon: Coupon) -> None:
        """
        Apply a coupon. Only registered coupon kinds are accepted, since
        anything else could not be restored from the store.

        Raises:
            CartError: not a Coupon, or its class is not registered
        """
        if not isinstance(coupon, Coupon):
            raise CartError("Coupon must implement Coupon.discount(cart)", code="INVALID_COUPON")
        if not is_registered(coupon):
            raise CartError(
                f"Coupon type {type(coupon).__name__} is not registered",
                code="INVALID_COUPON",
            )

        self._coupons.append(coupon)
        self._persist()
        self._notify(CartEvents.COUPON_APPLIED, coupon)

    def get_coupons(self) -> List[Coupon]:
        return list(self._coupons)

    def remove_coupon(self, code: str) -> bool:
        """Remove every applied coupon with this code."""
        remaining = [coupon for coupon in self._coupons if coupon.code != code]
        if len(remaining) == len(self._coupons):
            return False

        self._coupons = remaining
        self._persist()
        self._notify(CartEvents.COUPON_REMOVED, code)
        return True

    # Attributes

    def set_attribute(self, path: str, value: Any) -> None:
        set_path(self._attributes, path, value)
        self._persist()

    def get_attribute(self, path: str, default: Any = None) -> Any:
        return get_path(self._attributes, path, default)

    def remove_attribute(self, path: str) -> None:
        forget_path(self._attributes, path)
        self._persist()

    def get_attributes(self) -> Dict[str, Any]:
        return copy.deepcopy(self._attributes)

    def summary(self) -> dict:
        """Plain summary of the cart for display."""
        return {
            "instance": self._instance,
            "is_empty": not self._items,
            "total_items": self.count(),
            "items": [
                {
                    "hash": item.item_hash,
                    "id": item.id,
                    "name": item.name,
                    "quantity": item.quantity,
                    "unit_price": to_float(item.unit_price),
                    "total": to_float(item.subtotal() + item.sub_items_total()),
                }
                for item in self._items
            ],
            "coupons": [coupon.code for coupon in self._coupons],
            "sub_total": to_float(self.sub_total()),
            "tax": to_float(self.tax()),
            "discount": to_float(self.get_total_discount()),
            "total": to_float(self.total()),
            "formatted_total": self.total(formatted=True),
        }


def create_cart(
    instance: Optional[str] = None,
    settings: Optional[CartSettings] = None,
    events: Optional[EventBus] = None,
    redis=None,
    stream_events: bool = False,
) -> Cart:
    """
    Build a Redis-backed cart from environment settings.

    Args:
        instance: Instance to select (defaults to the persisted selector)
        settings: Explicit settings instead of CartSettings.from_env()
        events: Event bus to notify
        redis: Redis client to use instead of the shared one
        stream_events: Also forward events to the instance's Redis stream
    """
    settings = settings or CartSettings.from_env()
    store = RedisStore(redis=redis, ttl=settings.ttl)
    cart = Cart(store, instance=instance, settings=settings, events=events)
    if stream_events:
        attach_stream(cart.events, lambda: cart.instance, redis=redis)
    return cart

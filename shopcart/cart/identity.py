"""
Item identity hashing.

An item's hash is derived from the fields that make two purchasables "the
same": id, name, unit price and options. Options are canonicalized with
sorted keys so insertion order never changes the result. Quantity, tax and
attributes are not part of identity.
"""
import hashlib
import json
import secrets
from decimal import Decimal
from typing import Any, Container, Mapping, Optional

from shopcart.errors import HashGenerationError
from shopcart.logging import get_logger
from shopcart.services.money import round_money

logger = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 10

# Salt starts at 8 random bytes and grows by 4 per attempt
_SALT_BYTES = 8
_SALT_GROWTH = 4


def _canonical(value: Any) -> Any:
    """Make a value JSON-stable: sorted mappings, Decimals as strings."""
    if isinstance(value, Mapping):
        return {str(k): _canonical(v) for k, v in sorted(value.items(), key=lambda kv: str(kv[0]))}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    return value


def identity_payload(
    item_id: Any,
    name: Optional[str],
    unit_price: Decimal,
    options: Optional[Mapping] = None,
    salt: str = "",
) -> str:
    """Build the canonical string that is hashed."""
    payload = {
        # Type is kept so id 1 and id "1" stay distinct
        "id": [type(item_id).__name__, str(item_id)],
        "name": name,
        "price": str(round_money(unit_price)),
        "options": _canonical(options or {}),
    }
    if salt:
        payload["salt"] = salt
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


def item_hash(
    item_id: Any,
    name: Optional[str],
    unit_price: Decimal,
    options: Optional[Mapping] = None,
    salt: str = "",
) -> str:
    """Deterministic identity hash (hex md5) for the given fields."""
    payload = identity_payload(item_id, name, unit_price, options, salt)
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


def unique_item_hash(
    item_id: Any,
    name: Optional[str],
    unit_price: Decimal,
    options: Optional[Mapping] = None,
    taken: Container[str] = (),
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """
    Salted identity hash that does not collide with any hash in `taken`.

    Raises:
        HashGenerationError: no free hash within `max_attempts`
    """
    for attempt in range(max_attempts):
        salt = secrets.token_hex(_SALT_BYTES + attempt * _SALT_GROWTH)
        candidate = item_hash(item_id, name, unit_price, options, salt=salt)
        if candidate not in taken:
            return candidate
        logger.debug(f"Salted hash collision on attempt {attempt + 1}")

    raise HashGenerationError(max_attempts)

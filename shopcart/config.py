"""Cart configuration loaded from environment variables."""
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from shopcart.errors import CartConfigError, ERROR_CONFIG_INVALID

ROOT_DIR = Path(__file__).resolve().parents[1]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    value = os.environ.get(key)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _get_decimal(key: str, default: str) -> Decimal:
    raw = _get_env(key, default)
    try:
        value = Decimal(raw)
    except (InvalidOperation, TypeError):
        raise CartConfigError(f"{ERROR_CONFIG_INVALID}: {key}={raw!r}")
    if not value.is_finite():
        raise CartConfigError(f"{ERROR_CONFIG_INVALID}: {key}={raw!r}")
    return value


def _get_int(key: str, default: int) -> int:
    raw = _get_env(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise CartConfigError(f"{ERROR_CONFIG_INVALID}: {key}={raw!r}")


def _get_bool(key: str, default: bool) -> bool:
    raw = _get_env(key)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise CartConfigError(f"{ERROR_CONFIG_INVALID}: {key}={raw!r}")


@dataclass
class CartSettings:
    """Settings shared by every cart instance."""
    tax_rate: Decimal = Decimal("0")
    key_prefix: str = "cart:"
    instance_key: str = "cart:instance"
    default_instance: str = "default"
    ttl: int = 86400  # 24 hours, 0 disables expiry
    currency: Optional[str] = None
    locale: str = "en"
    international_format: bool = False
    clamp_total: bool = True
    hash_max_attempts: int = 10

    def __post_init__(self):
        if self.tax_rate < 0:
            raise CartConfigError(f"{ERROR_CONFIG_INVALID}: tax_rate must not be negative")
        if self.hash_max_attempts < 1:
            raise CartConfigError(f"{ERROR_CONFIG_INVALID}: hash_max_attempts must be at least 1")
        if self.ttl < 0:
            raise CartConfigError(f"{ERROR_CONFIG_INVALID}: ttl must not be negative")

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "CartSettings":
        """
        Build settings from CART_* environment variables.

        A .env file (repository root by default) is loaded first if present;
        variables already set in the environment win.
        """
        env_path = env_file or ROOT_DIR / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        return cls(
            tax_rate=_get_decimal("CART_TAX_RATE", "0"),
            key_prefix=_get_env("CART_KEY_PREFIX", "cart:"),
            instance_key=_get_env("CART_INSTANCE_KEY", "cart:instance"),
            default_instance=_get_env("CART_DEFAULT_INSTANCE", "default"),
            ttl=_get_int("CART_TTL", 86400),
            currency=_get_env("CART_CURRENCY"),
            locale=_get_env("CART_LOCALE", "en"),
            international_format=_get_bool("CART_INTERNATIONAL_FORMAT", False),
            clamp_total=_get_bool("CART_CLAMP_TOTAL", True),
            hash_max_attempts=_get_int("CART_HASH_MAX_ATTEMPTS", 10),
        )

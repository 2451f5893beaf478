from __future__ import annotations
import logging
import os
from pathlib import Path

__all__ = [
    "get_vat_rate",
    "get_default_commission_pct",
    "get_app_timezone",
    "get_openai_api_key",
    "get_openai_model",
]

logger = logging.getLogger(__name__)

DEFAULT_VAT_RATE: float = 1.20
DEFAULT_COMMISSION_PCT: float = 15.0
DEFAULT_TIMEZONE: str = "Australia/Melbourne"
DEFAULT_OPENAI_MODEL: str = "gpt-4o"


def _load_dotenv(dotenv_path: Path | str = ".env") -> None:
    path = Path(dotenv_path)
    if not path.is_file():
        return
    for line in path.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and value and key not in os.environ:
            os.environ[key] = value


def _get_setting(key: str, default: str = "") -> str:
    """
    Resolve a raw setting string.
    Priority: environment variable → .env file → default
    """
    value = os.environ.get(key, "").strip()
    if value:
        return value
    _load_dotenv()
    return os.environ.get(key, default).strip() or default


def _get_float(key: str, default: float) -> float:
    raw = _get_setting(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring malformed {key}={raw!r}; using default {default}")
        return default


def get_vat_rate() -> float:
    """
    Return the VAT multiplier used to strip tax from gross prices.
    1.20 is the UK standard rate. Values <= 0 are rejected in favour of the default.
    """
    rate = _get_float("PROMO_VAT_RATE", DEFAULT_VAT_RATE)
    if rate <= 0:
        logger.warning(f"PROMO_VAT_RATE must be positive, got {rate}; using {DEFAULT_VAT_RATE}")
        return DEFAULT_VAT_RATE
    return rate


def get_default_commission_pct() -> float:
    """
    Return the commission % applied when a platform has no pricing rule.
    Clamped to [0, 100].
    """
    pct = _get_float("PROMO_DEFAULT_COMMISSION_PCT", DEFAULT_COMMISSION_PCT)
    return max(0.0, min(pct, 100.0))


def get_app_timezone() -> str:
    """Return the IANA timezone name used to derive calendar-day keys."""
    return _get_setting("PROMO_TIMEZONE", DEFAULT_TIMEZONE)


def get_openai_api_key() -> str:
    """
    Return the OpenAI API key.
    Priority: environment variable → .env file
    """
    return _get_setting("OPENAI_API_KEY")


def get_openai_model() -> str:
    """Return the chat model used for the campaign brief."""
    return _get_setting("OPENAI_MODEL", DEFAULT_OPENAI_MODEL)

"""Money and secret helpers shared by the Stripe and Supabase adapters.

Event prices are kept as :class:`~decimal.Decimal` in the standard unit of
their currency (``25.00`` USD). Stripe wants integers in the currency's
minor unit (``2500`` cents), except for zero-decimal currencies such as JPY
where the two coincide. Conversion to Stripe rounds half up, so
``Decimal("0.005")`` USD charges 1 cent.
"""

from decimal import ROUND_HALF_UP, Decimal

ZERO_DECIMAL_CURRENCIES: frozenset[str] = frozenset(
    "BIF CLP DJF GNF JPY KMF KRW MGA PYG RWF UGX VND VUV XAF XOF XPF".split()
)

_MINOR_UNITS_PER_UNIT = 100
_VISIBLE_KEY_SUFFIX = 4


def minor_unit_factor(currency: str) -> int:
    """Return how many Stripe minor units make up one unit of *currency*."""
    return 1 if currency.upper() in ZERO_DECIMAL_CURRENCIES else _MINOR_UNITS_PER_UNIT


def convert_amount_for_api(amount: Decimal, currency: str) -> int:
    """Express an event price as a Stripe ``unit_amount``.

    ``Decimal("19.99")`` USD becomes ``1999`` and ``Decimal("10")`` becomes
    ``1000``. Fractions of a minor unit are rounded half up.

    Args:
        amount: The price in the standard currency unit.
        currency: ISO 4217 code, any case.

    Returns:
        The price in minor units.
    """
    minor = Decimal(amount) * minor_unit_factor(currency)
    return int(minor.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def convert_amount_for_db(amount: int, currency: str) -> Decimal:
    """Turn a Stripe minor-unit amount back into a standard-unit Decimal."""
    return Decimal(int(amount)) / minor_unit_factor(currency)


def obfuscate_key(key: str) -> str:
    """Mask a secret for logging, keeping only its last four characters.

    Secrets shorter than that are masked entirely.
    """
    visible = key[-_VISIBLE_KEY_SUFFIX:] if len(key) >= _VISIBLE_KEY_SUFFIX else ""
    return f"****{visible}"

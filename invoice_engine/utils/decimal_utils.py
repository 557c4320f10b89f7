"""
Helpers for money arithmetic with Decimal.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from invoice_engine.core.config import get_settings

ZERO = Decimal('0')
HUNDRED = Decimal('100')


def to_decimal(value: Any) -> Decimal:
    """Convierte int/float/str a Decimal sin arrastrar error binario de los floats"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert boolean {value!r} to an amount")
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, TypeError):
        raise ValueError(f"Invalid numeric value: {value!r}")


def quantum(places: Optional[int] = None) -> Decimal:
    if places is None:
        places = get_settings().AMOUNT_DECIMAL_PLACES
    return Decimal(1).scaleb(-places)


def round_amount(amount: Decimal, places: Optional[int] = None) -> Decimal:
    """Redondea un importe a la precisión configurada (por defecto 2 decimales, ROUND_HALF_UP)"""
    return to_decimal(amount).quantize(quantum(places), rounding=get_settings().rounding)


def percentage_of(base: Decimal, rate: Decimal) -> Decimal:
    """base * rate / 100, sin redondear"""
    return to_decimal(base) * to_decimal(rate) / HUNDRED


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    return sum((to_decimal(a) for a in amounts), ZERO)

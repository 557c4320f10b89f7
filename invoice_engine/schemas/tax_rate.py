"""
IVA rate of an invoice line as a tagged variant.

AFIP stores the rate as a number where -1 means "Exento" and -2 means
"No Gravado". Inside the engine the rate is one of three variants so the
sentinels never take part in arithmetic; ``code`` gives the numeric value
back for reporting.
"""
from decimal import Decimal
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, field_validator

from invoice_engine.core.config import get_settings
from invoice_engine.utils.decimal_utils import ZERO, to_decimal

EXEMPT_CODE = Decimal("-1")
NOT_TAXED_CODE = Decimal("-2")


class Percentage(BaseModel):
    """Alícuota gravada (0, 2.5, 5, 10.5, 21, 27)"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["percentage"] = "percentage"
    value: Decimal

    @field_validator("value", mode="before")
    @classmethod
    def validate_value(cls, v: Any) -> Decimal:
        v = to_decimal(v)
        allowed = get_settings().ALLOWED_TAX_RATES
        if v not in allowed:
            raise ValueError(f"Unknown tax rate {v}. Allowed rates: {[str(r) for r in allowed]}")
        return v

    @property
    def code(self) -> Decimal:
        return self.value

    @property
    def effective_rate(self) -> Decimal:
        return self.value if self.value > 0 else ZERO

    def __str__(self) -> str:
        return f"{self.value}%"


class Exempt(BaseModel):
    """Operación exenta: no genera IVA"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["exempt"] = "exempt"

    @property
    def code(self) -> Decimal:
        return EXEMPT_CODE

    @property
    def effective_rate(self) -> Decimal:
        return ZERO

    def __str__(self) -> str:
        return "Exento"


class NotTaxed(BaseModel):
    """Operación no gravada: no genera IVA"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["not_taxed"] = "not_taxed"

    @property
    def code(self) -> Decimal:
        return NOT_TAXED_CODE

    @property
    def effective_rate(self) -> Decimal:
        return ZERO

    def __str__(self) -> str:
        return "No Gravado"


_NAMED_RATES = {
    "exempt": Exempt,
    "exento": Exempt,
    "not_taxed": NotTaxed,
    "no_gravado": NotTaxed,
}


def _percentage(code: Decimal) -> Percentage:
    if code not in get_settings().ALLOWED_TAX_RATES:
        raise ValueError(f"Unknown tax rate code {code}")
    return Percentage(value=code)


def parse_tax_rate(value: Any) -> Union[Percentage, Exempt, NotTaxed]:
    """
    Convierte un código de alícuota al variante correspondiente.

    Acepta los variantes ya construidos, un dict con ``kind``, los nombres
    "exempt"/"not_taxed" (o "exento"/"no_gravado") y códigos numéricos
    AFIP (-1, -2 o una alícuota habilitada).
    """
    if isinstance(value, (Percentage, Exempt, NotTaxed)):
        return value
    if isinstance(value, dict):
        kind = value.get("kind")
        if kind == "percentage":
            return _percentage(to_decimal(value.get("value")))
        if kind in _NAMED_RATES:
            return _NAMED_RATES[kind]()
        raise ValueError(f"Unknown tax rate kind '{kind}'")
    if isinstance(value, str) and value.strip().lower() in _NAMED_RATES:
        return _NAMED_RATES[value.strip().lower()]()

    code = to_decimal(value)
    if code == EXEMPT_CODE:
        return Exempt()
    if code == NOT_TAXED_CODE:
        return NotTaxed()
    return _percentage(code)


TaxRate = Annotated[Union[Percentage, Exempt, NotTaxed], BeforeValidator(parse_tax_rate)]

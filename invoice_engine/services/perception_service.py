"""
Perception and withholding calculator.

Perceptions are charged by the issuer on top of the invoice; their amount is
always derived from the invoice's current subtotal and tax total, never
stored. Withholdings are retained by the payer and reduce the cash received.
"""
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from invoice_engine.models.perception import PerceptionBase
from invoice_engine.schemas.common import parse_record
from invoice_engine.schemas.invoice import InvoiceTotals, Perception, PerceptionAmount
from invoice_engine.schemas.payment import Withholding, WithholdingRule
from invoice_engine.schemas.payment import normalise_withholdings as _normalise_record
from invoice_engine.utils.decimal_utils import ZERO, percentage_of, round_amount, sum_amounts, to_decimal
from invoice_engine.utils.exceptions import ValidationError
from invoice_engine.utils.logging import get_logger

logger = get_logger(__name__)

PerceptionInput = Union[Perception, Dict[str, Any]]
WithholdingInput = Union[Withholding, Dict[str, Any]]


# ================================
# PERCEPTIONS
# ================================

def perception_base(base_type: PerceptionBase, subtotal: Decimal, tax_total: Decimal) -> Decimal:
    """net -> subtotal; total -> subtotal + IVA; vat -> IVA"""
    if base_type == PerceptionBase.NET:
        return subtotal
    if base_type == PerceptionBase.TOTAL:
        return subtotal + tax_total
    if base_type == PerceptionBase.VAT:
        return tax_total
    raise ValidationError(f"Unknown perception base '{base_type}'", field="base_type", value=base_type)


def calculate_perception(perception: PerceptionInput, subtotal: Decimal, tax_total: Decimal) -> PerceptionAmount:
    perception = parse_record(Perception, perception)
    base = perception_base(perception.base_type, to_decimal(subtotal), to_decimal(tax_total))
    amount = round_amount(percentage_of(base, perception.rate))

    logger.debug(
        f"[PERCEPTION] {perception.name}: {perception.rate}% of {perception.base_type.value} base {base} = {amount}"
    )
    return PerceptionAmount(
        type=perception.type,
        name=perception.name,
        rate=perception.rate,
        base_type=perception.base_type,
        base_amount=base,
        amount=amount,
    )


def calculate_perceptions(
    perceptions: Iterable[PerceptionInput],
    subtotal: Decimal,
    tax_total: Decimal
) -> List[PerceptionAmount]:
    return [calculate_perception(p, subtotal, tax_total) for p in perceptions]


def perception_total(perceptions: Iterable[PerceptionInput], subtotal: Decimal, tax_total: Decimal) -> Decimal:
    return sum_amounts(p.amount for p in calculate_perceptions(perceptions, subtotal, tax_total))


# ================================
# WITHHOLDINGS
# ================================

def total_withholdings(withholdings: Iterable[WithholdingInput]) -> Decimal:
    return sum_amounts(parse_record(Withholding, w).amount for w in withholdings)


def net_collected(gross_amount: Any, withholdings: Iterable[WithholdingInput]) -> Decimal:
    """
    Efectivo recibido: bruto menos retenciones.

    Raises:
        ValidationError: si las retenciones superan el importe bruto
    """
    gross = to_decimal(gross_amount)
    withheld = total_withholdings(withholdings)
    net = gross - withheld
    if net < 0:
        logger.warning(f"[WITHHOLDINGS] Withholdings {withheld} exceed gross amount {gross}")
        raise ValidationError(
            f"Withholdings {withheld} exceed gross amount {gross}",
            field="withholdings",
            value=withheld,
            reason="net amount would be negative"
        )
    return net


def normalise_withholdings(record: Dict[str, Any]) -> List[Withholding]:
    """
    Devuelve las retenciones de un registro de cobro como lista canónica.

    Acepta la lista (``withholdings``/``retentions``) o los campos planos
    ``withholding_<tipo>``; si vienen ambas formas gana la lista.
    """
    data = _normalise_record(record)
    return [parse_record(Withholding, w) for w in data["withholdings"]]


def withholding_base(
    base_type: PerceptionBase,
    gross_amount: Decimal,
    invoice_totals: Optional[InvoiceTotals] = None
) -> Decimal:
    """
    Base de una retención sobre un pago.

    Sin totales de factura todas las bases son el importe bruto. Con totales,
    la parte neta y la parte de IVA se prorratean según la composición de la
    factura.
    """
    if base_type == PerceptionBase.TOTAL or invoice_totals is None or invoice_totals.grand_total == 0:
        return gross_amount
    if base_type == PerceptionBase.NET:
        return gross_amount * invoice_totals.subtotal / invoice_totals.grand_total
    if base_type == PerceptionBase.VAT:
        return gross_amount * invoice_totals.tax_total / invoice_totals.grand_total
    raise ValidationError(f"Unknown withholding base '{base_type}'", field="base_type", value=base_type)


def calculate_withholdings(
    gross_amount: Any,
    rules: Sequence[Union[WithholdingRule, Dict[str, Any]]],
    invoice_totals: Optional[InvoiceTotals] = None
) -> List[Withholding]:
    """
    Calcula las retenciones que practica un agente de retención sobre un pago.

    Args:
        gross_amount: Importe bruto del pago
        rules: Retenciones configuradas (tipo, alícuota, base)
        invoice_totals: Totales de la factura pagada, para prorratear las bases net/vat

    Returns:
        Lista de retenciones con importe redondeado; las de importe cero se omiten
    """
    gross = to_decimal(gross_amount)
    if gross <= 0:
        raise ValidationError("Gross amount must be positive", field="gross_amount", value=gross)

    withholdings = []
    for raw_rule in rules:
        rule = parse_record(WithholdingRule, raw_rule)
        base = withholding_base(rule.base_type, gross, invoice_totals)
        amount = round_amount(percentage_of(base, rule.rate))
        if amount == ZERO:
            continue
        data: Dict[str, Any] = {"type": rule.type, "amount": amount}
        if rule.name:
            data["name"] = rule.name
        withholdings.append(Withholding(**data))

    net_collected(gross, withholdings)
    return withholdings

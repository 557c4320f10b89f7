"""
Invoice aggregator: line totals, perceptions and grand total.
"""
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Union

from invoice_engine.schemas.common import parse_record
from invoice_engine.schemas.invoice import Invoice, InvoiceLine, InvoiceTotals, LineTotals, Perception
from invoice_engine.services.line_item_service import LineInput, calculate_lines
from invoice_engine.services.perception_service import PerceptionInput, calculate_perceptions
from invoice_engine.utils.decimal_utils import round_amount, sum_amounts, to_decimal
from invoice_engine.utils.exceptions import StaleRecomputeError, ValidationError
from invoice_engine.utils.logging import get_logger

logger = get_logger(__name__)


def aggregate_lines(line_totals: Sequence[LineTotals]) -> Tuple[Decimal, Decimal]:
    """
    Suma subtotales e IVA de las líneas ya calculadas.

    Raises:
        ValidationError: si no hay líneas
    """
    if not line_totals:
        raise ValidationError("Invoice must have at least one line", field="lines", reason="empty")
    subtotal = sum_amounts(t.subtotal for t in line_totals)
    tax_total = sum_amounts(t.tax for t in line_totals)
    return subtotal, tax_total


def compute_invoice_totals(
    lines: Sequence[LineInput],
    perceptions: Optional[Iterable[PerceptionInput]] = None
) -> InvoiceTotals:
    """
    Calcula los totales de una factura a partir de sus líneas y percepciones.

    Las percepciones se calculan sobre el subtotal e IVA recién agregados,
    por lo que el resultado nunca depende de importes calculados antes.

    Args:
        lines: Líneas de la factura (modelos o dicts)
        perceptions: Percepciones a aplicar

    Returns:
        InvoiceTotals con grand_total = subtotal + tax_total + perception_total
    """
    subtotal, tax_total = aggregate_lines(calculate_lines(lines))
    perception_amounts = calculate_perceptions(perceptions or [], subtotal, tax_total)
    perception_total = sum_amounts(p.amount for p in perception_amounts)

    return InvoiceTotals(
        subtotal=subtotal,
        tax_total=tax_total,
        perception_total=perception_total,
        grand_total=subtotal + tax_total + perception_total,
        perceptions=perception_amounts,
    )


def replace_lines(
    invoice: Union[Invoice, Dict[str, Any]],
    lines: Sequence[LineInput],
    perceptions: Optional[Sequence[PerceptionInput]] = None,
    expected_version: Optional[int] = None
) -> Invoice:
    """
    Reemplaza las líneas (y opcionalmente las percepciones) de una factura.

    Solo se permite antes del primer cobro o nota aplicados. El saldo
    pendiente vuelve al nuevo total y la versión se incrementa.

    Raises:
        ValidationError: la factura ya tiene movimientos o las líneas son inválidas
        StaleRecomputeError: ``expected_version`` no coincide con la versión actual
    """
    invoice = parse_record(Invoice, invoice)

    if expected_version is not None and expected_version != invoice.version:
        logger.warning(
            f"[INVOICE] Stale edit on invoice {invoice.id}: expected v{expected_version}, found v{invoice.version}"
        )
        raise StaleRecomputeError(invoice.id, expected_version, invoice.version)

    if invoice.applied_event_ids:
        raise ValidationError(
            f"Invoice {invoice.id} already has settlement events applied; lines cannot be edited",
            field="lines",
            reason="invoice has settlement events"
        )

    new_lines = [parse_record(InvoiceLine, line) for line in lines]
    new_perceptions = (
        [parse_record(Perception, p) for p in perceptions]
        if perceptions is not None else list(invoice.perceptions)
    )
    totals = compute_invoice_totals(new_lines, new_perceptions)

    updated = invoice.model_copy(update={
        "lines": new_lines,
        "perceptions": new_perceptions,
        "pending_amount": totals.grand_total + invoice.debit_adjustments,
        "version": invoice.version + 1,
    })
    logger.info(
        f"[INVOICE] Lines of invoice {invoice.id} replaced: grand total {totals.grand_total} (v{updated.version})"
    )
    return updated


def to_local_currency(amount: Any, invoice: Union[Invoice, Dict[str, Any]]) -> Decimal:
    """Convierte un importe de la factura a pesos con su cotización"""
    invoice = parse_record(Invoice, invoice)
    try:
        value = to_decimal(amount)
    except ValueError as e:
        raise ValidationError(str(e), field="amount", value=amount) from e
    return round_amount(value * invoice.exchange_rate)

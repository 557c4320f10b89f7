"""
Line item calculator: subtotal and IVA of each invoice line.
"""
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Union

from invoice_engine.schemas.common import parse_record
from invoice_engine.schemas.invoice import InvoiceLine, LineTotals, TaxBreakdownRow
from invoice_engine.utils.decimal_utils import HUNDRED, percentage_of, round_amount
from invoice_engine.utils.logging import get_logger

logger = get_logger(__name__)

LineInput = Union[InvoiceLine, Dict[str, Any]]


def calculate_line(line: LineInput) -> LineTotals:
    """
    Calcula subtotal e IVA de una línea.

    subtotal = quantity * unit_price * (1 - discount / 100)
    tax = subtotal * effective_rate / 100

    Exento y No Gravado tienen alícuota efectiva 0. Ambos importes se
    redondean a la precisión configurada.

    Raises:
        ValidationError: cantidad, precio, descuento o alícuota inválidos
    """
    line = parse_record(InvoiceLine, line)

    gross = line.quantity * line.unit_price
    subtotal = round_amount(gross * (HUNDRED - line.discount_percentage) / HUNDRED)
    tax = round_amount(percentage_of(subtotal, line.tax_rate.effective_rate))

    logger.debug(
        f"[LINE] '{line.description}': {line.quantity} x {line.unit_price} "
        f"- {line.discount_percentage}% @ {line.tax_rate} -> subtotal={subtotal} tax={tax}"
    )
    return LineTotals(subtotal=subtotal, tax=tax)


def calculate_lines(lines: Iterable[LineInput]) -> List[LineTotals]:
    return [calculate_line(line) for line in lines]


def tax_breakdown(lines: Iterable[LineInput]) -> List[TaxBreakdownRow]:
    """
    Agrupa neto e IVA por alícuota, como la tabla de IVA del comprobante.

    Exento y No Gravado quedan en filas separadas aunque ambos tengan IVA 0.
    Las filas salen ordenadas por código.
    """
    rows: Dict[Decimal, TaxBreakdownRow] = {}
    for raw in lines:
        line = parse_record(InvoiceLine, raw)
        totals = calculate_line(line)
        code = line.tax_rate.code
        row = rows.get(code)
        if row is None:
            rows[code] = TaxBreakdownRow(
                tax_rate=line.tax_rate, code=code, net_amount=totals.subtotal, tax_amount=totals.tax
            )
        else:
            rows[code] = row.model_copy(update={
                "net_amount": row.net_amount + totals.subtotal,
                "tax_amount": row.tax_amount + totals.tax,
            })
    return [rows[code] for code in sorted(rows)]


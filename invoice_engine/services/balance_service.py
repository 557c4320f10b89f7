"""
Entity and currency aggregator.

Balances are grouped by counterparty and kept per currency; amounts in
different currencies are never added together.
"""
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

from invoice_engine.core.config import get_settings
from invoice_engine.models.balance import BalanceDirection, BalanceType
from invoice_engine.models.invoice import CURRENCY_ALIASES, Currency, SettlementState
from invoice_engine.schemas.balance import BookSummary, CurrencyBalance, EntityBalance
from invoice_engine.schemas.common import parse_record
from invoice_engine.schemas.invoice import Invoice
from invoice_engine.schemas.note import Note
from invoice_engine.utils.decimal_utils import ZERO
from invoice_engine.utils.enum_validators import validate_enum_case_insensitive
from invoice_engine.utils.exceptions import ValidationError
from invoice_engine.utils.logging import get_logger

logger = get_logger(__name__)

# Dirección + naturaleza del saldo de notas -> ¿la contraparte nos debe?
OWED_TO_COMPANY = {
    (BalanceDirection.RECEIVABLE, BalanceType.DEBIT): True,
    (BalanceDirection.RECEIVABLE, BalanceType.CREDIT): False,
    (BalanceDirection.PAYABLE, BalanceType.DEBIT): False,
    (BalanceDirection.PAYABLE, BalanceType.CREDIT): True,
}


def _parse_direction(direction: Union[BalanceDirection, str]) -> BalanceDirection:
    try:
        return validate_enum_case_insensitive(direction, BalanceDirection)
    except ValueError as e:
        raise ValidationError(str(e), field="direction", value=direction) from e


def _parse_currency(currency: Union[Currency, str, None]) -> Currency:
    if currency is None:
        return Currency(get_settings().PRIMARY_CURRENCY)
    try:
        return validate_enum_case_insensitive(currency, Currency, CURRENCY_ALIASES)
    except ValueError as e:
        raise ValidationError(str(e), field="primary_currency", value=currency) from e


def _has_currency(raw: Any) -> bool:
    """Registros planos sin código de moneda no se agrupan en ninguna moneda"""
    return not isinstance(raw, dict) or bool(raw.get("currency"))


def note_balance(credits: Decimal, debits: Decimal) -> BalanceType:
    """Compara directamente débitos y créditos, sin pasar por el signo de la diferencia"""
    if debits > credits:
        return BalanceType.DEBIT
    if credits > debits:
        return BalanceType.CREDIT
    return BalanceType.NEUTRAL


def aggregate_entity_balances(
    invoices: Iterable[Union[Invoice, Dict[str, Any]]],
    notes: Iterable[Union[Note, Dict[str, Any]]],
    direction: Union[BalanceDirection, str],
    primary_currency: Union[Currency, str, None] = None
) -> List[EntityBalance]:
    """
    Agrupa saldos pendientes y notas sin asociar por contraparte y moneda.

    - Facturas anuladas o rechazadas no suman al pendiente.
    - Notas de crédito sin asociar suman a ``credits``; de débito, a ``debits``.
    - Las notas asociadas ya impactaron en el pendiente de su factura y se ignoran.
    - Registros sin moneda no aportan filas: una contraparte sin registros
      con moneda no aparece en el resultado.

    Args:
        invoices: Facturas de una o varias contrapartes
        notes: Notas de crédito/débito
        direction: receivable (clientes) o payable (proveedores)
        primary_currency: Moneda que ordena el resultado (por defecto PRIMARY_CURRENCY)

    Returns:
        Lista de EntityBalance ordenada por pendiente descendente en la moneda
        principal y luego por id de contraparte
    """
    direction = _parse_direction(direction)
    primary = _parse_currency(primary_currency)

    # counterparty_id -> currency -> acumuladores
    grouped: Dict[str, Dict[Currency, Dict[str, Any]]] = defaultdict(
        lambda: defaultdict(lambda: {"count": 0, "pending": ZERO, "credits": ZERO, "debits": ZERO})
    )

    for raw in invoices:
        if not _has_currency(raw):
            logger.debug(f"[BALANCES] Skipping invoice {raw.get('id')} without currency")
            continue
        invoice = parse_record(Invoice, raw)
        if invoice.status.is_void:
            logger.debug(f"[BALANCES] Skipping {invoice.status.value} invoice {invoice.id}")
            continue
        bucket = grouped[invoice.counterparty_id][invoice.currency]
        bucket["count"] += 1
        bucket["pending"] += invoice.pending_amount

    for raw in notes:
        if not _has_currency(raw):
            logger.debug(f"[BALANCES] Skipping note {raw.get('id')} without currency")
            continue
        note = parse_record(Note, raw)
        if note.is_associated:
            continue
        if not note.counterparty_id:
            raise ValidationError(
                f"Unassociated note {note.id} has no counterparty",
                field="counterparty_id",
                reason="required for unassociated notes"
            )
        bucket = grouped[note.counterparty_id][note.currency]
        if note.is_credit:
            bucket["credits"] += note.total
        else:
            bucket["debits"] += note.total

    balances = []
    for counterparty_id, currencies in grouped.items():
        entity = EntityBalance(counterparty_id=counterparty_id, direction=direction)
        for currency, bucket in currencies.items():
            balance_type = note_balance(bucket["credits"], bucket["debits"])
            entity.currencies[currency] = CurrencyBalance(
                currency=currency,
                invoice_count=bucket["count"],
                pending=bucket["pending"],
                credits=bucket["credits"],
                debits=bucket["debits"],
                net_balance=abs(bucket["debits"] - bucket["credits"]),
                balance_type=balance_type,
                owed_to_company=OWED_TO_COMPANY.get((direction, balance_type), False),
            )
        balances.append(entity)

    balances.sort(key=lambda e: (-e.total_pending(primary), e.counterparty_id))
    logger.info(
        f"[BALANCES] Aggregated {len(balances)} {direction.value} counterparties (sorted by {primary.value})"
    )
    return balances


def summarize_book(
    invoices: Iterable[Union[Invoice, Dict[str, Any]]],
    today: Optional[date] = None,
    upcoming_days: Optional[int] = None
) -> Dict[Currency, BookSummary]:
    """
    Resumen de cartera por moneda: pendiente, vencido, por vencer y cobrado.

    "Por vencer" son las facturas no vencidas cuyo vencimiento cae dentro de
    los próximos ``upcoming_days`` días (por defecto UPCOMING_WINDOW_DAYS).
    """
    today = today or date.today()
    if upcoming_days is None:
        upcoming_days = get_settings().UPCOMING_WINDOW_DAYS
    if upcoming_days < 0:
        raise ValidationError("upcoming_days must not be negative", field="upcoming_days", value=upcoming_days)
    window_end = today + timedelta(days=upcoming_days)

    summaries: Dict[Currency, BookSummary] = {}
    for raw in invoices:
        if not _has_currency(raw):
            continue
        invoice = parse_record(Invoice, raw)
        if invoice.status.is_void:
            continue

        summary = summaries.setdefault(invoice.currency, BookSummary(currency=invoice.currency))
        summary.invoice_count += 1
        summary.total_pending += invoice.pending_amount
        summary.settled_amount += invoice.settleable_total - invoice.pending_amount

        if invoice.settlement_state == SettlementState.SETTLED:
            continue
        if invoice.is_overdue(today):
            summary.overdue_count += 1
            summary.overdue_amount += invoice.pending_amount
        elif invoice.due_date <= window_end:
            summary.upcoming_count += 1
            summary.upcoming_amount += invoice.pending_amount

    return summaries

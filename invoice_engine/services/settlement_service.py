"""
Settlement ledger: applies collections and credit/debit notes to invoices.

``apply_settlement`` is a pure function over one invoice and one event and
returns the updated invoice inside the result. ``SettlementLedger`` keeps
the current invoice state in memory and serialises applications with one
lock per invoice.
"""
from contextlib import ExitStack
from datetime import date
from decimal import Decimal
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from invoice_engine.models.invoice import SettlementState
from invoice_engine.models.note import NoteKind
from invoice_engine.schemas.common import parse_record
from invoice_engine.schemas.invoice import Invoice
from invoice_engine.schemas.note import Note
from invoice_engine.schemas.payment import Collection
from invoice_engine.schemas.settlement import CreditExcess, SettlementEvent, SettlementResult, parse_event
from invoice_engine.utils.decimal_utils import ZERO
from invoice_engine.utils.exceptions import (
    CurrencyMismatchError, DuplicateApplicationError, NotFoundError,
    OverAllocationError, StaleRecomputeError, ValidationError,
)
from invoice_engine.utils.logging import get_logger

logger = get_logger(__name__)

InvoiceInput = Union[Invoice, Dict[str, Any]]
EventInput = Union[Collection, Note, Dict[str, Any]]


def _check_event_target(invoice: Invoice, event: SettlementEvent) -> None:
    if not invoice.status.accepts_settlement:
        raise ValidationError(
            f"Invoice {invoice.id} is {invoice.status.value} and does not accept settlement events",
            field="status",
            value=invoice.status.value,
            reason="invoice is not issued or approved"
        )

    if event.id in invoice.applied_event_ids:
        raise DuplicateApplicationError(invoice.id, event.id)

    if event.currency != invoice.currency:
        raise CurrencyMismatchError(invoice.id, event.id, invoice.currency.value, event.currency.value)

    if isinstance(event, Collection):
        if invoice.id not in event.target_invoice_ids:
            raise ValidationError(
                f"Collection {event.id} is not allocated to invoice {invoice.id}",
                field="invoice_id",
                value=event.invoice_id
            )
    elif event.linked_invoice_id is None:
        raise ValidationError(
            f"Note {event.id} is not associated with an invoice; it only counts in entity balances",
            field="linked_invoice_id",
            reason="unassociated note"
        )
    elif event.linked_invoice_id != invoice.id:
        raise ValidationError(
            f"Note {event.id} is linked to invoice {event.linked_invoice_id}, not {invoice.id}",
            field="linked_invoice_id",
            value=event.linked_invoice_id
        )


def apply_settlement(
    invoice: InvoiceInput,
    event: EventInput,
    today: Optional[date] = None
) -> SettlementResult:
    """
    Aplica un cobro o una nota a una factura.

    Cobro: el pendiente baja en el importe bruto asignado a la factura; las
    retenciones no cambian lo cancelado, solo el efectivo recibido.
    Nota de crédito asociada: el pendiente baja hasta 0 como mínimo y el
    excedente se informa como discrepancia.
    Nota de débito asociada: el pendiente y el total liquidable suben.

    La factura recibida nunca se modifica; la actualizada viaja en el resultado.

    Raises:
        ValidationError: factura anulada/rechazada, evento mal formado o dirigido a otra factura
        DuplicateApplicationError: el evento ya fue aplicado a esta factura
        CurrencyMismatchError: el evento está en otra moneda
        OverAllocationError: el cobro supera el saldo pendiente
    """
    invoice = parse_record(Invoice, invoice)
    event = parse_event(event)
    today = today or date.today()

    try:
        _check_event_target(invoice, event)
    except (ValidationError, DuplicateApplicationError, CurrencyMismatchError) as e:
        logger.warning(f"[SETTLEMENT] Rejected event {event.id} on invoice {invoice.id}: {e}")
        raise

    pending = invoice.pending_amount
    debit_adjustments = invoice.debit_adjustments
    discrepancy = None
    net_cash = None

    if isinstance(event, Collection):
        event_type = "collection"
        applied = event.allocated_to(invoice.id)
        if applied > pending:
            logger.warning(
                f"[SETTLEMENT] Collection {event.id} of {applied} exceeds pending {pending} on invoice {invoice.id}"
            )
            raise OverAllocationError(invoice.id, event.id, pending, applied)
        pending -= applied
        net_cash = event.net_cash_for(invoice.id)
    elif event.kind == NoteKind.CREDIT:
        event_type = "credit_note"
        applied = min(event.total, pending)
        excess = event.total - applied
        pending -= applied
        if excess > ZERO:
            discrepancy = CreditExcess(
                invoice_id=invoice.id,
                note_id=event.id,
                counterparty_id=event.counterparty_id or invoice.counterparty_id,
                currency=invoice.currency,
                amount=excess,
                issue_date=event.issue_date,
            )
            logger.warning(
                f"[SETTLEMENT] Credit note {event.id} exceeds pending of invoice {invoice.id} by {excess}"
            )
    else:
        event_type = "debit_note"
        applied = event.total
        pending += applied
        debit_adjustments += applied

    updated = invoice.model_copy(update={
        "pending_amount": pending,
        "debit_adjustments": debit_adjustments,
        "applied_event_ids": [*invoice.applied_event_ids, event.id],
        "version": invoice.version + 1,
    })

    logger.info(
        f"[SETTLEMENT] Applied {event_type} {event.id} ({applied}) to invoice {invoice.id}: "
        f"pending {invoice.pending_amount} -> {pending} [{updated.settlement_state.value}]"
    )
    return SettlementResult(
        invoice_id=invoice.id,
        event_id=event.id,
        event_type=event_type,
        applied_amount=applied,
        pending_amount=pending,
        state=updated.settlement_state,
        overdue=updated.is_overdue(today),
        net_cash=net_cash,
        discrepancy=discrepancy,
        invoice=updated,
    )


class SettlementLedger:
    """
    Libro en memoria con el estado vigente de cada factura.

    Cada factura tiene su propio lock: dos eventos sobre la misma factura se
    aplican uno detrás del otro, eventos sobre facturas distintas corren en
    paralelo. Los identificadores de evento son únicos en todo el libro.
    """

    def __init__(self, invoices: Optional[Iterable[InvoiceInput]] = None):
        self._invoices: Dict[str, Invoice] = {}
        self._locks: Dict[str, Lock] = {}
        self._event_ids: Set[str] = set()
        self._history: List[SettlementResult] = []
        self._discrepancies: List[CreditExcess] = []
        # Protege los diccionarios del libro, no las facturas
        self._state_lock = Lock()

        for invoice in invoices or []:
            self.register(invoice)

    # ================================
    # INVOICES
    # ================================

    def register(self, invoice: InvoiceInput) -> Invoice:
        invoice = parse_record(Invoice, invoice)
        with self._state_lock:
            if invoice.id in self._invoices:
                raise ValidationError(
                    f"Invoice {invoice.id} is already registered", field="id", value=invoice.id
                )
            self._invoices[invoice.id] = invoice
            self._locks[invoice.id] = Lock()
            # Los eventos ya aplicados a la factura cuentan para la unicidad
            self._event_ids.update(invoice.applied_event_ids)
        logger.debug(f"[LEDGER] Registered invoice {invoice.id} with pending {invoice.pending_amount}")
        return invoice

    def get(self, invoice_id: str) -> Invoice:
        with self._state_lock:
            invoice = self._invoices.get(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    def invoices(self) -> List[Invoice]:
        with self._state_lock:
            return list(self._invoices.values())

    def __len__(self) -> int:
        return len(self._invoices)

    def __contains__(self, invoice_id: str) -> bool:
        return invoice_id in self._invoices

    # ================================
    # EVENTS
    # ================================

    def apply(
        self,
        event: EventInput,
        expected_version: Optional[int] = None,
        today: Optional[date] = None
    ) -> SettlementResult:
        """
        Aplica una nota asociada o un cobro de una sola factura.

        Args:
            event: Cobro o nota (modelo o dict)
            expected_version: Versión de la factura que el llamador vio por última vez
            today: Fecha de referencia para el flag de vencida

        Raises:
            NotFoundError: la factura destino no está en el libro
            StaleRecomputeError: la versión no coincide
        """
        event = parse_event(event)
        invoice_id = self._target_invoice_id(event)

        with self._lock_for(invoice_id):
            current = self._invoices[invoice_id]
            if expected_version is not None and expected_version != current.version:
                logger.warning(
                    f"[LEDGER] Stale apply of {event.id} on invoice {invoice_id}: "
                    f"expected v{expected_version}, found v{current.version}"
                )
                raise StaleRecomputeError(invoice_id, expected_version, current.version)

            self._reserve_event(event.id, invoice_id)
            try:
                result = apply_settlement(current, event, today)
            except Exception:
                self._release_event(event.id)
                raise
            self._commit([result])
        return result

    def apply_collection(
        self,
        collection: Union[Collection, Dict[str, Any]],
        today: Optional[date] = None
    ) -> List[SettlementResult]:
        """
        Aplica un cobro repartido entre varias facturas, todo o nada.

        Los locks se toman en orden de id para que dos cobros sobre las mismas
        facturas no se bloqueen mutuamente. Si alguna asignación falla no se
        modifica ninguna factura.
        """
        collection = parse_record(Collection, collection)
        invoice_ids = sorted(set(collection.target_invoice_ids))

        with ExitStack() as stack:
            for invoice_id in invoice_ids:
                stack.enter_context(self._lock_for(invoice_id))

            self._reserve_event(collection.id, invoice_ids[0])
            try:
                results = [
                    apply_settlement(self._invoices[invoice_id], collection, today)
                    for invoice_id in collection.target_invoice_ids
                ]
            except Exception:
                self._release_event(collection.id)
                raise
            self._commit(results)

        logger.info(
            f"[LEDGER] Collection {collection.id} of {collection.gross_amount} applied to "
            f"{len(results)} invoice(s): {', '.join(invoice_ids)}"
        )
        return results

    def history(self, invoice_id: Optional[str] = None) -> List[SettlementResult]:
        with self._state_lock:
            return [r for r in self._history if invoice_id is None or r.invoice_id == invoice_id]

    def discrepancies(self, invoice_id: Optional[str] = None) -> List[CreditExcess]:
        with self._state_lock:
            return [d for d in self._discrepancies if invoice_id is None or d.invoice_id == invoice_id]

    def pending_amount(self, invoice_id: str) -> Decimal:
        return self.get(invoice_id).pending_amount

    def state(self, invoice_id: str) -> SettlementState:
        return self.get(invoice_id).settlement_state

    # ================================
    # INTERNALS
    # ================================

    def _target_invoice_id(self, event: SettlementEvent) -> str:
        if isinstance(event, Note):
            if event.linked_invoice_id is None:
                raise ValidationError(
                    f"Note {event.id} is not associated with an invoice",
                    field="linked_invoice_id",
                    reason="unassociated note"
                )
            return event.linked_invoice_id

        targets = event.target_invoice_ids
        if len(targets) > 1:
            raise ValidationError(
                f"Collection {event.id} is allocated to {len(targets)} invoices; use apply_collection",
                field="allocations",
                reason="multi-invoice collection"
            )
        return targets[0]

    def _lock_for(self, invoice_id: str) -> Lock:
        with self._state_lock:
            lock = self._locks.get(invoice_id)
        if lock is None:
            raise NotFoundError("Invoice", invoice_id)
        return lock

    def _reserve_event(self, event_id: str, invoice_id: str) -> None:
        with self._state_lock:
            if event_id in self._event_ids:
                logger.warning(f"[LEDGER] Event {event_id} was already applied")
                raise DuplicateApplicationError(invoice_id, event_id)
            self._event_ids.add(event_id)

    def _release_event(self, event_id: str) -> None:
        with self._state_lock:
            self._event_ids.discard(event_id)

    def _commit(self, results: List[SettlementResult]) -> None:
        with self._state_lock:
            for result in results:
                self._invoices[result.invoice_id] = result.invoice
                self._history.append(result)
                if result.discrepancy is not None:
                    self._discrepancies.append(result.discrepancy)

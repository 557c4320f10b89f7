"""
Settlement result schemas.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from invoice_engine.models.invoice import Currency, SettlementState
from invoice_engine.models.note import NoteKind
from invoice_engine.schemas.common import parse_record
from invoice_engine.schemas.invoice import Invoice
from invoice_engine.schemas.note import Note
from invoice_engine.schemas.payment import Collection

SettlementEvent = Union[Collection, Note]


class CreditExcess(BaseModel):
    """
    Parte de una nota de crédito que supera el saldo pendiente de la factura.

    No se descarta: queda registrada y puede convertirse en una nota de
    crédito sin asociar a favor de la contraparte.
    """
    model_config = ConfigDict(frozen=True)

    invoice_id: str
    note_id: str
    counterparty_id: Optional[str] = None
    currency: Currency
    amount: Decimal = Field(gt=0)
    issue_date: date

    def as_unassociated_note(self) -> Note:
        return Note(
            id=f"{self.note_id}-excess",
            kind=NoteKind.CREDIT,
            issue_date=self.issue_date,
            total=self.amount,
            currency=self.currency,
            counterparty_id=self.counterparty_id,
            linked_invoice_id=None,
        )


class SettlementResult(BaseModel):
    """Resultado de aplicar un cobro o una nota a una factura"""
    invoice_id: str
    event_id: str
    event_type: Literal["collection", "credit_note", "debit_note"]
    applied_amount: Decimal
    pending_amount: Decimal
    state: SettlementState
    overdue: bool
    net_cash: Optional[Decimal] = Field(None, description="Efectivo neto recibido (solo cobros)")
    discrepancy: Optional[CreditExcess] = None
    invoice: Invoice = Field(description="Factura actualizada")


def parse_event(data: Any) -> SettlementEvent:
    """Un registro con ``kind`` (o código NC/ND) es una nota; cualquier otro, un cobro"""
    if isinstance(data, (Collection, Note)):
        return data
    if isinstance(data, dict) and (data.get("kind") or str(data.get("type", "")).upper()[:2] in ("NC", "ND")):
        return parse_record(Note, data)
    return parse_record(Collection, data)

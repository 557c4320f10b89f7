from invoice_engine.models.invoice import (
    Currency,
    InvoiceType,
    InvoiceConcept,
    InvoiceStatus,
    SettlementState,
)
from invoice_engine.models.perception import PerceptionType, PerceptionBase
from invoice_engine.models.payment import PaymentMethod, WithholdingType
from invoice_engine.models.note import NoteKind
from invoice_engine.models.balance import BalanceDirection, BalanceType

__all__ = [
    "Currency",
    "InvoiceType",
    "InvoiceConcept",
    "InvoiceStatus",
    "SettlementState",
    "PerceptionType",
    "PerceptionBase",
    "PaymentMethod",
    "WithholdingType",
    "NoteKind",
    "BalanceDirection",
    "BalanceType",
]

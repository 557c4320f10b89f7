"""
Motor de liquidación de comprobantes e impuestos (Argentina).

Calcula totales de factura con IVA y percepciones, aplica cobros con
retenciones y notas de crédito/débito, y agrupa saldos por contraparte y
moneda.
"""
from invoice_engine.services.invoice_totals_service import compute_invoice_totals
from invoice_engine.services.settlement_service import SettlementLedger, apply_settlement
from invoice_engine.services.balance_service import aggregate_entity_balances, summarize_book
from invoice_engine.utils.exceptions import (
    CurrencyMismatchError,
    DuplicateApplicationError,
    InvoiceEngineException,
    NotFoundError,
    OverAllocationError,
    StaleRecomputeError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    "compute_invoice_totals",
    "apply_settlement",
    "aggregate_entity_balances",
    "summarize_book",
    "SettlementLedger",
    "InvoiceEngineException",
    "ValidationError",
    "OverAllocationError",
    "CurrencyMismatchError",
    "DuplicateApplicationError",
    "StaleRecomputeError",
    "NotFoundError",
]

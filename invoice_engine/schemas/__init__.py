from invoice_engine.schemas.balance import BookSummary, CurrencyBalance, EntityBalance
from invoice_engine.schemas.common import Money, parse_record
from invoice_engine.schemas.invoice import (
    Invoice, InvoiceLine, InvoiceTotals, LineTotals, Perception, PerceptionAmount, TaxBreakdownRow,
)
from invoice_engine.schemas.note import Note
from invoice_engine.schemas.payment import (
    Allocation, Collection, Withholding, WithholdingRule, normalise_withholdings,
)
from invoice_engine.schemas.settlement import CreditExcess, SettlementEvent, SettlementResult, parse_event
from invoice_engine.schemas.tax_rate import Exempt, NotTaxed, Percentage, TaxRate, parse_tax_rate

__all__ = [
    "Allocation", "BookSummary", "Collection", "CreditExcess", "CurrencyBalance", "EntityBalance",
    "Exempt", "Invoice", "InvoiceLine", "InvoiceTotals", "LineTotals", "Money", "Note", "NotTaxed",
    "Percentage", "Perception", "PerceptionAmount", "SettlementEvent", "SettlementResult",
    "TaxBreakdownRow", "TaxRate", "Withholding", "WithholdingRule",
    "normalise_withholdings", "parse_event", "parse_record", "parse_tax_rate",
]

# Importar todos los servicios
from invoice_engine.services.line_item_service import calculate_line, calculate_lines, tax_breakdown
from invoice_engine.services.invoice_totals_service import (
    aggregate_lines, compute_invoice_totals, replace_lines, to_local_currency,
)
from invoice_engine.services.perception_service import (
    calculate_perception, calculate_perceptions, calculate_withholdings, net_collected,
    normalise_withholdings, perception_base, perception_total, total_withholdings,
)
from invoice_engine.services.settlement_service import SettlementLedger, apply_settlement
from invoice_engine.services.balance_service import aggregate_entity_balances, summarize_book

# Exportar para facilitar importaciones
__all__ = [
    "calculate_line",
    "calculate_lines",
    "tax_breakdown",
    "aggregate_lines",
    "compute_invoice_totals",
    "replace_lines",
    "to_local_currency",
    "calculate_perception",
    "calculate_perceptions",
    "calculate_withholdings",
    "net_collected",
    "normalise_withholdings",
    "perception_base",
    "perception_total",
    "total_withholdings",
    "SettlementLedger",
    "apply_settlement",
    "aggregate_entity_balances",
    "summarize_book",
]

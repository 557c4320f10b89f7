import pytest
from decimal import Decimal

from invoice_engine import compute_invoice_totals
from invoice_engine.models.invoice import SettlementState
from invoice_engine.schemas.common import parse_record
from invoice_engine.schemas.invoice import Invoice
from invoice_engine.services.invoice_totals_service import aggregate_lines, replace_lines, to_local_currency
from invoice_engine.services.line_item_service import calculate_lines
from invoice_engine.services.settlement_service import apply_settlement
from invoice_engine.utils.exceptions import StaleRecomputeError, ValidationError

LINES = [
    {"description": "Servicio", "quantity": 1, "unit_price": 1000, "tax_rate": 21},
]


class TestAggregateLines:

    def test_sums_subtotals_and_taxes(self):
        line_totals = calculate_lines([
            {"description": "A", "quantity": 2, "unit_price": 100, "discount_percentage": 10, "tax_rate": 21},
            {"description": "B", "unit_price": 50, "tax_rate": -1},
        ])

        subtotal, tax_total = aggregate_lines(line_totals)

        assert subtotal == Decimal("230.00")
        assert tax_total == Decimal("37.80")

    def test_order_independent(self):
        line_totals = calculate_lines([
            {"description": "A", "unit_price": "10.10", "tax_rate": 21},
            {"description": "B", "unit_price": "20.20", "tax_rate": "10.5"},
            {"description": "C", "unit_price": "30.30", "tax_rate": 27},
        ])

        assert aggregate_lines(line_totals) == aggregate_lines(list(reversed(line_totals)))

    def test_empty_lines_rejected(self):
        with pytest.raises(ValidationError):
            aggregate_lines([])


class TestComputeInvoiceTotals:

    def test_grand_total_includes_perceptions(self):
        totals = compute_invoice_totals(LINES, [
            {"type": "iibb_bsas", "rate": 3, "base_type": "net"},
            {"type": "iva", "rate": "1.5", "base_type": "vat"},
        ])

        assert totals.subtotal == Decimal("1000.00")
        assert totals.tax_total == Decimal("210.00")
        assert [p.amount for p in totals.perceptions] == [Decimal("30.00"), Decimal("3.15")]
        assert totals.perception_total == Decimal("33.15")
        assert totals.grand_total == Decimal("1243.15")
        assert totals.grand_total == totals.subtotal + totals.tax_total + totals.perception_total

    def test_without_perceptions(self):
        totals = compute_invoice_totals(LINES)

        assert totals.perception_total == Decimal("0")
        assert totals.grand_total == Decimal("1210.00")

    def test_empty_lines_rejected(self):
        with pytest.raises(ValidationError):
            compute_invoice_totals([], [])

    def test_invalid_perception_rejected_before_totals(self):
        with pytest.raises(ValidationError) as exc_info:
            compute_invoice_totals(LINES, [{"type": "iibb_bsas", "rate": 150}])

        assert exc_info.value.details["field"] == "rate"


class TestInvoiceRecord:
    """Totales recalculados en cada lectura del registro"""

    def test_fresh_invoice_starts_pending_at_grand_total(self, make_invoice):
        invoice = make_invoice(lines=LINES, perceptions=[{"type": "iibb_caba", "rate": 3, "baseType": "total"}])

        assert invoice.perception_total == Decimal("36.30")
        assert invoice.grand_total == Decimal("1246.30")
        assert invoice.pending_amount == invoice.grand_total
        assert invoice.settlement_state == SettlementState.ISSUED

    def test_number_is_formatted(self, invoice):
        assert invoice.number == "00001-00000042"

    def test_serialized_record_carries_computed_totals(self, invoice):
        data = invoice.model_dump()

        assert data["grand_total"] == Decimal("1000.00")
        assert data["settlement_state"] == SettlementState.ISSUED

    def test_pending_above_total_rejected(self, invoice_data):
        with pytest.raises(ValidationError):
            parse_record(Invoice, {**invoice_data, "pending_amount": 1500})

    @pytest.mark.parametrize("overrides", [
        {"due_date": "2025-02-01"},
        {"currency": "USD", "exchange_rate": 0},
        {"exchange_rate": 2},
        {"lines": []},
        {"concept": "services"},
        {"concept": "services", "service_date_from": "2025-03-10", "service_date_to": "2025-03-01"},
        {"sales_point": 0},
        {"currency": None},
    ])
    def test_invalid_invoice_rejected(self, invoice_data, overrides):
        with pytest.raises(ValidationError):
            parse_record(Invoice, {**invoice_data, **overrides})

    def test_services_invoice_with_dates(self, make_invoice):
        invoice = make_invoice(concept="servicios", service_date_from="2025-02-01", service_date_to="2025-02-28")

        assert invoice.concept.requires_service_dates

    def test_usd_invoice_in_local_currency(self, make_invoice):
        invoice = make_invoice(currency="dol", exchange_rate="1050.5")

        assert to_local_currency(invoice.grand_total, invoice) == Decimal("1050500.00")


class TestReplaceLines:

    def test_recomputes_and_bumps_version(self, invoice):
        updated = replace_lines(invoice, LINES, expected_version=0)

        assert updated.grand_total == Decimal("1210.00")
        assert updated.pending_amount == Decimal("1210.00")
        assert updated.version == 1
        assert invoice.grand_total == Decimal("1000.00")

    def test_perceptions_follow_new_lines(self, make_invoice):
        invoice = make_invoice(perceptions=[{"type": "iibb_bsas", "rate": 3}])
        assert invoice.perception_total == Decimal("30.00")

        updated = replace_lines(invoice, [{"description": "Item", "unit_price": 2000, "tax_rate": 0}])

        assert updated.perception_total == Decimal("60.00")
        assert updated.grand_total == Decimal("2060.00")

    def test_stale_version_rejected(self, invoice):
        with pytest.raises(StaleRecomputeError) as exc_info:
            replace_lines(invoice, LINES, expected_version=3)

        assert exc_info.value.details == {"invoice_id": "inv-1", "expected_version": 3, "actual_version": 0}

    def test_edit_after_settlement_rejected(self, invoice, collection_data):
        settled = apply_settlement(invoice, collection_data).invoice

        with pytest.raises(ValidationError):
            replace_lines(settled, LINES)

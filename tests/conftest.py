"""
Fixtures compartidas para los tests del motor de liquidación
"""
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict

import pytest

from invoice_engine.core.config import get_settings
from invoice_engine.schemas.invoice import Invoice
from invoice_engine.services.settlement_service import SettlementLedger

TODAY = date(2025, 3, 15)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def clean_settings():
    """Limpia la configuración cacheada antes y después del test"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def invoice_data() -> Dict[str, Any]:
    """Factura A de 1000 ARS exenta de IVA, en el formato de los registros planos"""
    return {
        "id": "inv-1",
        "type": "A",
        "sales_point": 1,
        "voucher_number": 42,
        "issue_date": "2025-03-01",
        "due_date": "2025-03-31",
        "currency": "ARS",
        "exchange_rate": 1,
        "concept": "products",
        "lines": [
            {"description": "Servicio de consultoría", "quantity": 1, "unit_price": 1000, "tax_rate": 0}
        ],
        "perceptions": [],
        "counterparty_id": "client-1",
    }


@pytest.fixture
def make_invoice(invoice_data: Dict[str, Any]) -> Callable[..., Invoice]:
    """Factory: arma una factura a partir de ``invoice_data`` con campos reemplazados"""
    def _make(**overrides: Any) -> Invoice:
        data = {**invoice_data, **overrides}
        if "total" in data:
            total = data.pop("total")
            data["lines"] = [
                {"description": "Item", "quantity": 1, "unit_price": total, "tax_rate": 0}
            ]
        return Invoice.model_validate(data)
    return _make


@pytest.fixture
def invoice(make_invoice) -> Invoice:
    return make_invoice()


@pytest.fixture
def collection_data() -> Dict[str, Any]:
    return {
        "id": "col-1",
        "invoice_id": "inv-1",
        "gross_amount": 600,
        "currency": "ARS",
        "method": "transfer",
        "date": "2025-03-10",
        "withholdings": [{"type": "iva", "name": "Retención IVA", "amount": 50}],
    }


@pytest.fixture
def credit_note_data() -> Dict[str, Any]:
    return {
        "id": "nc-1",
        "kind": "credit",
        "type": "NCA",
        "voucher_number": "00001-00000007",
        "issue_date": "2025-03-12",
        "total": 500,
        "currency": "ARS",
        "counterparty_id": "client-1",
        "linked_invoice_id": "inv-1",
    }


@pytest.fixture
def ledger(make_invoice) -> SettlementLedger:
    """Libro con dos facturas del mismo cliente: inv-1 (1000) e inv-2 (500)"""
    return SettlementLedger([
        make_invoice(),
        make_invoice(id="inv-2", voucher_number=43, total=Decimal("500")),
    ])

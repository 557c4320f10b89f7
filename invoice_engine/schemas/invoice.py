"""
Invoice schemas: line items, perceptions, the invoice record and computed totals.

Invoice totals are recomputed on every read (``computed_field``) from the
current lines and perceptions, so a perception amount can never be stale
after a line edit. Only ``pending_amount`` is stored state.
"""
from datetime import date
from decimal import Decimal
from typing import Any, List, Optional

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field,
    computed_field, field_validator, model_validator,
)

from invoice_engine.models.invoice import (
    Currency, InvoiceConcept, InvoiceStatus, InvoiceType, SettlementState,
)
from invoice_engine.models.perception import PerceptionBase, PerceptionType, PERCEPTION_TYPE_ALIASES
from invoice_engine.schemas.common import (
    ConceptField, CurrencyField, InvoiceStatusField, InvoiceTypeField, Money,
    PerceptionBaseField, PerceptionTypeField,
)
from invoice_engine.schemas.tax_rate import TaxRate
from invoice_engine.utils.decimal_utils import ZERO
from invoice_engine.utils.enum_validators import validate_enum_case_insensitive


# ================================
# LINE SCHEMAS
# ================================

class InvoiceLine(BaseModel):
    """Línea de factura; inmutable una vez emitida la factura"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description: str = Field(min_length=1, description="Descripción de la línea")
    quantity: Money = Field(default=Decimal("1"), gt=0, description="Cantidad")
    unit_price: Money = Field(
        ge=0,
        validation_alias=AliasChoices("unit_price", "unitPrice"),
        description="Precio unitario"
    )
    discount_percentage: Money = Field(
        default=ZERO,
        ge=0,
        le=100,
        validation_alias=AliasChoices("discount_percentage", "discountPercentage", "discount"),
        description="Porcentaje de descuento"
    )
    tax_rate: TaxRate = Field(
        validation_alias=AliasChoices("tax_rate", "taxRate"),
        description="Alícuota de IVA; -1 Exento, -2 No Gravado"
    )


class LineTotals(BaseModel):
    """Importes calculados de una línea"""
    model_config = ConfigDict(frozen=True)

    subtotal: Decimal = Field(description="quantity * unit_price * (1 - discount / 100)")
    tax: Decimal = Field(description="subtotal * alícuota efectiva / 100")

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.tax


class TaxBreakdownRow(BaseModel):
    """Neto e IVA agrupados por alícuota (tabla de IVA del comprobante)"""
    tax_rate: TaxRate
    code: Decimal
    net_amount: Decimal
    tax_amount: Decimal


# ================================
# PERCEPTION SCHEMAS
# ================================

class Perception(BaseModel):
    """Percepción aplicada al emitir; su importe se deriva siempre de la base"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: PerceptionTypeField = Field(description="Impuesto/jurisdicción")
    name: str = Field(description="Nombre a mostrar")
    rate: Money = Field(ge=0, le=100, description="Alícuota")
    base_type: PerceptionBaseField = Field(
        default=PerceptionBase.NET,
        validation_alias=AliasChoices("base_type", "baseType"),
        description="Base imponible: net, total o vat"
    )

    @model_validator(mode="before")
    @classmethod
    def default_name(cls, data: Any) -> Any:
        """Si no viene nombre se usa el de la jurisdicción"""
        if isinstance(data, dict) and not data.get("name") and data.get("type"):
            try:
                perception_type = validate_enum_case_insensitive(
                    data["type"], PerceptionType, PERCEPTION_TYPE_ALIASES
                )
            except ValueError:
                # El error de tipo lo reporta la validación del campo
                return data
            data = {**data, "name": perception_type.display_name}
        return data


class PerceptionAmount(BaseModel):
    """Percepción con su base e importe calculados"""
    type: PerceptionType
    name: str
    rate: Decimal
    base_type: PerceptionBase
    base_amount: Decimal
    amount: Decimal


class InvoiceTotals(BaseModel):
    """Totales de la factura en su propia moneda"""
    subtotal: Decimal
    tax_total: Decimal
    perception_total: Decimal
    grand_total: Decimal
    perceptions: List[PerceptionAmount] = Field(default_factory=list)


# ================================
# INVOICE SCHEMA
# ================================

class Invoice(BaseModel):
    """
    Factura emitida o recibida.

    Los registros se tratan como inmutables: los servicios devuelven copias
    con ``model_copy`` en lugar de modificar la instancia recibida.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: InvoiceTypeField = Field(default=InvoiceType.A, description="Letra del comprobante")
    sales_point: int = Field(
        ge=1,
        validation_alias=AliasChoices("sales_point", "salesPoint", "punto_venta", "puntoVenta"),
        description="Punto de venta"
    )
    voucher_number: int = Field(
        ge=1,
        validation_alias=AliasChoices("voucher_number", "voucherNumber", "numero_comprobante", "numeroComprobante"),
        description="Número de comprobante"
    )
    issue_date: date = Field(validation_alias=AliasChoices("issue_date", "issueDate"))
    due_date: date = Field(validation_alias=AliasChoices("due_date", "dueDate"))
    currency: CurrencyField
    exchange_rate: Money = Field(
        default=Decimal("1"),
        gt=0,
        validation_alias=AliasChoices("exchange_rate", "exchangeRate", "moneda_cotizacion", "monedaCotizacion"),
        description="Cotización de la moneda"
    )
    concept: ConceptField = Field(
        default=InvoiceConcept.PRODUCTS,
        validation_alias=AliasChoices("concept", "concepto")
    )
    service_date_from: Optional[date] = None
    service_date_to: Optional[date] = None
    lines: List[InvoiceLine] = Field(validation_alias=AliasChoices("lines", "items"))
    perceptions: List[Perception] = Field(default_factory=list)
    counterparty_id: str = Field(description="ID del cliente o proveedor")
    status: InvoiceStatusField = InvoiceStatus.ISSUED

    # Estado de liquidación
    pending_amount: Optional[Money] = Field(None, description="Saldo pendiente; por defecto el total")
    debit_adjustments: Money = Field(default=ZERO, ge=0, description="Notas de débito asociadas aplicadas")
    applied_event_ids: List[str] = Field(default_factory=list)
    version: int = Field(default=0, ge=0)

    @field_validator("lines")
    @classmethod
    def validate_lines(cls, v: List[InvoiceLine]) -> List[InvoiceLine]:
        """Validar que hay al menos una línea"""
        if not v:
            raise ValueError("Invoice must have at least one line")
        return v

    @model_validator(mode="after")
    def validate_invoice(self) -> "Invoice":
        if self.due_date < self.issue_date:
            raise ValueError("Due date must be on or after issue date")

        if self.currency == Currency.ARS and self.exchange_rate != 1:
            raise ValueError("Exchange rate must be 1 for ARS invoices")

        if self.concept.requires_service_dates:
            if not self.service_date_from or not self.service_date_to:
                raise ValueError("Service invoices require service_date_from and service_date_to")
            if self.service_date_from > self.service_date_to:
                raise ValueError("service_date_from must be on or before service_date_to")

        if self.pending_amount is None:
            self.pending_amount = self.settleable_total
        elif self.pending_amount < 0 or self.pending_amount > self.settleable_total:
            raise ValueError(
                f"Pending amount {self.pending_amount} must be between 0 and {self.settleable_total}"
            )
        return self

    # ================================
    # TOTALES (recalculados en cada lectura)
    # ================================

    @property
    def totals(self) -> InvoiceTotals:
        from invoice_engine.services.invoice_totals_service import compute_invoice_totals
        return compute_invoice_totals(self.lines, self.perceptions)

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return self.totals.subtotal

    @computed_field
    @property
    def tax_total(self) -> Decimal:
        return self.totals.tax_total

    @computed_field
    @property
    def perception_total(self) -> Decimal:
        return self.totals.perception_total

    @computed_field
    @property
    def grand_total(self) -> Decimal:
        return self.totals.grand_total

    @computed_field
    @property
    def settleable_total(self) -> Decimal:
        """Total más las notas de débito asociadas: techo del saldo pendiente"""
        return self.grand_total + self.debit_adjustments

    @computed_field
    @property
    def settlement_state(self) -> SettlementState:
        if self.pending_amount == 0:
            return SettlementState.SETTLED
        if self.pending_amount == self.settleable_total:
            return SettlementState.ISSUED
        return SettlementState.PARTIALLY_SETTLED

    @computed_field
    @property
    def number(self) -> str:
        """Número completo del comprobante: PPPPP-NNNNNNNN"""
        return f"{self.sales_point:05d}-{self.voucher_number:08d}"

    def is_overdue(self, today: date) -> bool:
        """Vencida: fecha de vencimiento pasada, saldo pendiente y no anulada"""
        return (
            self.due_date < today
            and self.settlement_state != SettlementState.SETTLED
            and not self.status.is_void
        )

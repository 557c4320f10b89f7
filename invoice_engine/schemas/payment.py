"""
Collection/payment schemas.

A collection settles one invoice (``invoice_id``) or, through
``allocations``, several invoices of the same counterparty. Withholdings
are kept as one canonical list; older records that carry them as flat
``withholding_*`` fields are converted on input.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import (
    AliasChoices, BaseModel, ConfigDict, Field,
    computed_field, model_validator,
)

from invoice_engine.models.payment import (
    FLAT_WITHHOLDING_FIELDS, WITHHOLDING_NAMES, WITHHOLDING_TYPE_ALIASES, PaymentMethod, WithholdingType,
)
from invoice_engine.models.perception import PerceptionBase
from invoice_engine.schemas.common import (
    CurrencyField, Money, PaymentMethodField, PerceptionBaseField, WithholdingTypeField,
)
from invoice_engine.utils.decimal_utils import ZERO, round_amount, sum_amounts, to_decimal
from invoice_engine.utils.enum_validators import validate_enum_case_insensitive
from invoice_engine.utils.logging import get_logger

logger = get_logger(__name__)

LIST_WITHHOLDING_KEYS = ("withholdings", "retentions")


def normalise_withholdings(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Adapta las dos formas de informar retenciones a una sola lista.

    Si el registro trae una lista (``withholdings`` o ``retentions``) se usa
    esa y se ignoran los campos planos, igual que hacía el listado de cobros;
    si no, cada campo ``withholding_<tipo>`` con importe distinto de cero se
    convierte en una entrada de la lista.
    """
    data = dict(data)
    flat_fields = {key: data.pop(key) for key in list(data) if key in FLAT_WITHHOLDING_FIELDS}

    listed = None
    for key in LIST_WITHHOLDING_KEYS:
        value = data.pop(key, None)
        if listed is None and value is not None:
            listed = value

    if listed is not None:
        if flat_fields and any(to_decimal(v or 0) != 0 for v in flat_fields.values()):
            logger.debug(
                f"[WITHHOLDINGS] Record {data.get('id')} has both list and flat withholdings, using the list"
            )
        data["withholdings"] = list(listed)
        return data

    data["withholdings"] = [
        {"type": FLAT_WITHHOLDING_FIELDS[key].value, "amount": value}
        for key, value in flat_fields.items()
        if value is not None and to_decimal(value) != 0
    ]
    return data


class Withholding(BaseModel):
    """Retención: importe nombrado que reduce el efectivo cobrado"""
    model_config = ConfigDict(frozen=True)

    type: WithholdingTypeField = WithholdingType.OTHER
    name: str = ""
    amount: Money = Field(ge=0)
    certificate_number: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def default_name(cls, data: Any) -> Any:
        """Registros viejos sin nombre: se usa el del tipo de retención"""
        if isinstance(data, dict) and not data.get("name"):
            try:
                withholding_type = validate_enum_case_insensitive(
                    data.get("type") or WithholdingType.OTHER, WithholdingType, WITHHOLDING_TYPE_ALIASES
                )
            except ValueError:
                return data
            data = {**data, "name": WITHHOLDING_NAMES[withholding_type]}
        return data


class Allocation(BaseModel):
    """Parte de un cobro asignada a una factura"""
    model_config = ConfigDict(frozen=True)

    invoice_id: str
    amount: Money = Field(gt=0)


class Collection(BaseModel):
    """Cobro (cuentas a cobrar) o pago (cuentas a pagar)"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1, description="Identidad del cobro; detecta aplicaciones repetidas")
    invoice_id: Optional[str] = Field(None, validation_alias=AliasChoices("invoice_id", "invoiceId"))
    gross_amount: Money = Field(
        gt=0,
        validation_alias=AliasChoices("gross_amount", "amount", "original_amount", "originalAmount"),
        description="Importe bruto aplicado a la deuda"
    )
    currency: CurrencyField
    method: PaymentMethodField = Field(
        default=PaymentMethod.TRANSFER,
        validation_alias=AliasChoices("method", "payment_method", "paymentMethod")
    )
    collection_date: date = Field(
        validation_alias=AliasChoices("collection_date", "date", "payment_date", "paymentDate")
    )
    withholdings: List[Withholding] = Field(default_factory=list)
    allocations: List[Allocation] = Field(default_factory=list)
    reference: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def adapt_withholdings(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return normalise_withholdings(data)
        return data

    @model_validator(mode="after")
    def validate_collection(self) -> "Collection":
        if self.net_amount < 0:
            raise ValueError(
                f"Withholdings {self.total_withholdings} exceed gross amount {self.gross_amount}"
            )

        if not self.allocations:
            if not self.invoice_id:
                raise ValueError("Collection must reference an invoice or carry allocations")
            return self

        invoice_ids = [allocation.invoice_id for allocation in self.allocations]
        if len(set(invoice_ids)) != len(invoice_ids):
            raise ValueError("Each invoice can appear only once in the allocations")
        if self.invoice_id and self.invoice_id not in invoice_ids:
            raise ValueError(f"Invoice {self.invoice_id} is not among the allocations")

        allocated = sum_amounts(allocation.amount for allocation in self.allocations)
        if allocated != self.gross_amount:
            raise ValueError(
                f"Allocations total {allocated} must equal the gross amount {self.gross_amount} "
                f"(difference {self.gross_amount - allocated})"
            )
        return self

    @computed_field
    @property
    def total_withholdings(self) -> Decimal:
        return sum_amounts(w.amount for w in self.withholdings)

    @computed_field
    @property
    def net_amount(self) -> Decimal:
        """Efectivo efectivamente recibido: bruto menos retenciones"""
        return self.gross_amount - self.total_withholdings

    @property
    def target_invoice_ids(self) -> List[str]:
        if self.allocations:
            return [allocation.invoice_id for allocation in self.allocations]
        return [self.invoice_id]

    def allocated_to(self, invoice_id: str) -> Decimal:
        """Importe bruto asignado a la factura (cero si no la incluye)"""
        if not self.allocations:
            return self.gross_amount if invoice_id == self.invoice_id else ZERO
        for allocation in self.allocations:
            if allocation.invoice_id == invoice_id:
                return allocation.amount
        return ZERO

    def net_cash_for(self, invoice_id: str) -> Decimal:
        """
        Efectivo neto prorrateado según lo asignado a la factura.

        La última asignación recibe el resto, así la suma de las partes es
        exactamente ``net_amount``.
        """
        allocated = self.allocated_to(invoice_id)
        if allocated == self.gross_amount:
            return self.net_amount
        if allocated == ZERO:
            return ZERO
        if self.allocations and self.allocations[-1].invoice_id == invoice_id:
            previous = sum_amounts(self._prorated_net(a.amount) for a in self.allocations[:-1])
            return self.net_amount - previous
        return self._prorated_net(allocated)

    def _prorated_net(self, allocated: Decimal) -> Decimal:
        return round_amount(self.net_amount * allocated / self.gross_amount)


class WithholdingRule(BaseModel):
    """Retención configurada para un agente de retención: alícuota sobre una base"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: WithholdingTypeField = WithholdingType.OTHER
    name: str = ""
    rate: Money = Field(gt=0, le=100)
    base_type: PerceptionBaseField = Field(
        default=PerceptionBase.TOTAL,
        validation_alias=AliasChoices("base_type", "baseType")
    )

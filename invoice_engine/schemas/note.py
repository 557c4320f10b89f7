"""
Credit and debit note schemas.
"""
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, model_validator

from invoice_engine.models.note import NoteKind, kind_from_voucher_type
from invoice_engine.schemas.common import CurrencyField, Money, NoteKindField
from invoice_engine.utils.decimal_utils import to_decimal


class Note(BaseModel):
    """
    Nota de crédito o débito.

    El signo lo determina ``kind``: el total se guarda siempre positivo y
    ``signed_amount`` lo devuelve negativo para las notas de crédito. Una
    nota con ``linked_invoice_id`` ajusta esa factura; sin vínculo queda como
    saldo a favor/en contra de la contraparte.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    kind: NoteKindField
    type: Optional[str] = Field(None, description="Código de comprobante (NCA, NDB, ...)")
    voucher_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("voucher_number", "voucherNumber", "number")
    )
    issue_date: date = Field(validation_alias=AliasChoices("issue_date", "issueDate", "date"))
    due_date: Optional[date] = Field(None, validation_alias=AliasChoices("due_date", "dueDate"))
    total: Money = Field(gt=0, description="Importe de la nota, siempre positivo")
    currency: CurrencyField
    counterparty_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("counterparty_id", "counterpartyId", "client_id", "supplier_id")
    )
    linked_invoice_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "linked_invoice_id", "linkedInvoiceId", "related_invoice_id", "relatedInvoiceId"
        )
    )

    @model_validator(mode="before")
    @classmethod
    def normalise_record(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("kind") and data.get("type"):
            data["kind"] = kind_from_voucher_type(data["type"])
        if data.get("total") is not None:
            # Registros viejos guardaban las notas de crédito con total negativo
            data["total"] = abs(to_decimal(data["total"]))
        return data

    @computed_field
    @property
    def signed_amount(self) -> Decimal:
        if self.kind == NoteKind.CREDIT:
            return -self.total
        return self.total

    @computed_field
    @property
    def is_associated(self) -> bool:
        return self.linked_invoice_id is not None

    @property
    def is_credit(self) -> bool:
        return self.kind == NoteKind.CREDIT

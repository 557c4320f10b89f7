"""
Shared field types and the boundary parser for plain-data records.
"""
from decimal import Decimal
from typing import Annotated, Any, Type, TypeVar

from pydantic import BaseModel, BeforeValidator
from pydantic import ValidationError as PydanticValidationError

from invoice_engine.models.invoice import (
    Currency, InvoiceConcept, InvoiceStatus, InvoiceType,
    CURRENCY_ALIASES, CONCEPT_ALIASES, INVOICE_STATUS_ALIASES,
)
from invoice_engine.models.note import NoteKind, NOTE_KIND_ALIASES
from invoice_engine.models.payment import (
    PaymentMethod, WithholdingType, PAYMENT_METHOD_ALIASES, WITHHOLDING_TYPE_ALIASES,
)
from invoice_engine.models.perception import (
    PerceptionBase, PerceptionType, PERCEPTION_BASE_ALIASES, PERCEPTION_TYPE_ALIASES,
)
from invoice_engine.utils.decimal_utils import to_decimal
from invoice_engine.utils.enum_validators import create_enum_validator
from invoice_engine.utils.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


# ================================
# ANNOTATED FIELD TYPES
# ================================

Money = Annotated[Decimal, BeforeValidator(to_decimal)]

CurrencyField = Annotated[Currency, BeforeValidator(create_enum_validator(Currency, CURRENCY_ALIASES))]
InvoiceTypeField = Annotated[InvoiceType, BeforeValidator(create_enum_validator(InvoiceType))]
ConceptField = Annotated[InvoiceConcept, BeforeValidator(create_enum_validator(InvoiceConcept, CONCEPT_ALIASES))]
InvoiceStatusField = Annotated[
    InvoiceStatus, BeforeValidator(create_enum_validator(InvoiceStatus, INVOICE_STATUS_ALIASES))
]
PerceptionTypeField = Annotated[
    PerceptionType, BeforeValidator(create_enum_validator(PerceptionType, PERCEPTION_TYPE_ALIASES))
]
PerceptionBaseField = Annotated[
    PerceptionBase, BeforeValidator(create_enum_validator(PerceptionBase, PERCEPTION_BASE_ALIASES))
]
PaymentMethodField = Annotated[
    PaymentMethod, BeforeValidator(create_enum_validator(PaymentMethod, PAYMENT_METHOD_ALIASES))
]
WithholdingTypeField = Annotated[
    WithholdingType, BeforeValidator(create_enum_validator(WithholdingType, WITHHOLDING_TYPE_ALIASES))
]
NoteKindField = Annotated[NoteKind, BeforeValidator(create_enum_validator(NoteKind, NOTE_KIND_ALIASES))]


def parse_record(model_class: Type[ModelT], data: Any) -> ModelT:
    """
    Convierte un registro plano (dict) al modelo indicado.

    Los errores de pydantic se traducen a ValidationError del motor con el
    primer campo inválido como contexto.
    """
    if isinstance(data, model_class):
        return data
    try:
        return model_class.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        reason = first.get("msg", "Invalid value")
        raise ValidationError(
            f"Invalid {model_class.__name__} record: {reason}" + (f" (field '{field}')" if field else ""),
            field=field,
            value=first.get("input") if not isinstance(first.get("input"), dict) else None,
            reason=reason
        ) from e

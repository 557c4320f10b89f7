"""
Collection/payment enums.
"""
from enum import Enum


class PaymentMethod(str, Enum):
    """Métodos de cobro/pago"""
    TRANSFER = "transfer"  # Transferencia bancaria
    CHECK = "check"        # Cheque
    CASH = "cash"          # Efectivo
    CARD = "card"          # Tarjeta
    OTHER = "other"        # Otro


class WithholdingType(str, Enum):
    """Retenciones sufridas al cobrar o practicadas al pagar"""
    IVA = "iva"
    GANANCIAS = "ganancias"
    IIBB = "iibb"
    SUSS = "suss"
    OTHER = "other"


PAYMENT_METHOD_ALIASES = {
    "transferencia": PaymentMethod.TRANSFER,
    "bank_transfer": PaymentMethod.TRANSFER,
    "cheque": PaymentMethod.CHECK,
    "efectivo": PaymentMethod.CASH,
    "tarjeta": PaymentMethod.CARD,
    "credit_card": PaymentMethod.CARD,
    "debit_card": PaymentMethod.CARD,
}

WITHHOLDING_TYPE_ALIASES = {
    "retencion_iva": WithholdingType.IVA,
    "retencion_ganancias": WithholdingType.GANANCIAS,
    "retencion_iibb": WithholdingType.IIBB,
    "retencion_suss": WithholdingType.SUSS,
}

# Campos planos del formato anterior de cobros (withholding_iva, withholding_ganancias, ...)
FLAT_WITHHOLDING_FIELDS = {
    f"withholding_{withholding_type.value}": withholding_type
    for withholding_type in WithholdingType
}

WITHHOLDING_NAMES = {
    WithholdingType.IVA: "Retención IVA",
    WithholdingType.GANANCIAS: "Retención Ganancias",
    WithholdingType.IIBB: "Retención IIBB",
    WithholdingType.SUSS: "Retención SUSS",
    WithholdingType.OTHER: "Otras retenciones",
}

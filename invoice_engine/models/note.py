"""
Credit/debit note enums.
"""
from enum import Enum


class NoteKind(str, Enum):
    """Tipo de nota: el signo lo define el tipo, nunca el importe"""
    CREDIT = "credit"  # Reduce el saldo
    DEBIT = "debit"    # Aumenta el saldo


# Códigos de comprobante AFIP (NCA, NDB, ...) y nombres en castellano
NOTE_KIND_ALIASES = {
    "nota_credito": NoteKind.CREDIT,
    "nota_debito": NoteKind.DEBIT,
    "nc": NoteKind.CREDIT,
    "nd": NoteKind.DEBIT,
}

CREDIT_NOTE_TYPES = ["NCA", "NCB", "NCC", "NCM", "NCE"]
DEBIT_NOTE_TYPES = ["NDA", "NDB", "NDC", "NDM", "NDE"]


def kind_from_voucher_type(voucher_type: str) -> NoteKind:
    """Deduce el tipo de nota desde el código de comprobante (NCA, NDB, ...)"""
    code = voucher_type.upper().strip()
    if code in CREDIT_NOTE_TYPES:
        return NoteKind.CREDIT
    if code in DEBIT_NOTE_TYPES:
        return NoteKind.DEBIT
    raise ValueError(f"Unknown note voucher type '{voucher_type}'")

"""
Balance direction and type enums.
"""
from enum import Enum


class BalanceDirection(str, Enum):
    """Sentido de la relación con la contraparte"""
    RECEIVABLE = "receivable"  # Cuentas a cobrar: nos deben a nosotros
    PAYABLE = "payable"        # Cuentas a pagar: le debemos a la contraparte


class BalanceType(str, Enum):
    """Naturaleza del saldo neto de notas sin asociar"""
    DEBIT = "debit"      # Predominan las notas de débito
    CREDIT = "credit"    # Predominan las notas de crédito
    NEUTRAL = "neutral"  # Se compensan exactamente

"""
Balance schemas: per counterparty and per currency, plus the book summary.
"""
from decimal import Decimal
from typing import Dict

from pydantic import BaseModel, Field

from invoice_engine.models.balance import BalanceDirection, BalanceType
from invoice_engine.models.invoice import Currency
from invoice_engine.utils.decimal_utils import ZERO


class CurrencyBalance(BaseModel):
    """Saldo de una contraparte en una moneda; nunca se mezclan monedas"""
    currency: Currency
    invoice_count: int = 0
    pending: Decimal = ZERO
    credits: Decimal = Field(default=ZERO, description="Notas de crédito sin asociar")
    debits: Decimal = Field(default=ZERO, description="Notas de débito sin asociar")
    net_balance: Decimal = ZERO
    balance_type: BalanceType = BalanceType.NEUTRAL
    owed_to_company: bool = False


class EntityBalance(BaseModel):
    counterparty_id: str
    direction: BalanceDirection
    currencies: Dict[Currency, CurrencyBalance] = Field(default_factory=dict)

    def total_pending(self, currency: Currency) -> Decimal:
        balance = self.currencies.get(currency)
        return balance.pending if balance else ZERO


class BookSummary(BaseModel):
    """Resumen de la cartera en una moneda"""
    currency: Currency
    invoice_count: int = 0
    total_pending: Decimal = ZERO
    overdue_count: int = 0
    overdue_amount: Decimal = ZERO
    upcoming_count: int = 0
    upcoming_amount: Decimal = ZERO
    settled_amount: Decimal = ZERO

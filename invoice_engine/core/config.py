"""
Configuración del motor de liquidación

Este módulo maneja la configuración del motor: precisión monetaria,
alícuotas de IVA habilitadas, moneda principal del libro y nivel de log.
Las variables de entorno (o un archivo .env) tienen prioridad sobre los
valores por defecto.
"""

import decimal
from decimal import Decimal
from functools import lru_cache
from typing import List, Union

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Cargar variables de entorno desde archivo .env
load_dotenv()

ROUNDING_MODES = [
    "ROUND_HALF_UP", "ROUND_HALF_EVEN", "ROUND_HALF_DOWN",
    "ROUND_UP", "ROUND_DOWN", "ROUND_CEILING", "ROUND_FLOOR",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # Project Information
    PROJECT_NAME: str = "Invoice Engine"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development, testing, production

    # ================================
    # PRECISIÓN MONETARIA
    # ================================
    AMOUNT_DECIMAL_PLACES: int = 2
    ROUNDING_MODE: str = "ROUND_HALF_UP"

    # ================================
    # IMPUESTOS
    # ================================
    # Alícuotas de IVA habilitadas por AFIP (Exento -1 y No Gravado -2 se manejan aparte)
    ALLOWED_TAX_RATES: List[Decimal] = [
        Decimal("0"), Decimal("2.5"), Decimal("5"), Decimal("10.5"), Decimal("21"), Decimal("27")
    ]

    # ================================
    # SALDOS
    # ================================
    PRIMARY_CURRENCY: str = "ARS"
    UPCOMING_WINDOW_DAYS: int = 7

    LOG_LEVEL: str = "INFO"

    @field_validator("ALLOWED_TAX_RATES", mode="before")
    @classmethod
    def assemble_tax_rates(cls, v: Union[str, List]) -> List:
        if isinstance(v, str):
            return [i.strip() for i in v.strip("[]").split(",") if i.strip()]
        return v

    @field_validator("ALLOWED_TAX_RATES")
    @classmethod
    def validate_tax_rates(cls, v: List[Decimal]) -> List[Decimal]:
        """Las alícuotas deben ser porcentajes entre 0 y 100"""
        for rate in v:
            if rate < 0 or rate > 100:
                raise ValueError(f"Tax rate {rate} must be between 0 and 100")
        return v

    @field_validator("ROUNDING_MODE")
    @classmethod
    def validate_rounding_mode(cls, v: str) -> str:
        v = v.upper()
        if v not in ROUNDING_MODES:
            raise ValueError(f"Rounding mode must be one of: {ROUNDING_MODES}")
        return v

    @field_validator("AMOUNT_DECIMAL_PLACES")
    @classmethod
    def validate_decimal_places(cls, v: int) -> int:
        if v < 0 or v > 6:
            raise ValueError("AMOUNT_DECIMAL_PLACES must be between 0 and 6")
        return v

    @field_validator("PRIMARY_CURRENCY")
    @classmethod
    def validate_primary_currency(cls, v: str) -> str:
        allowed = ["ARS", "USD", "EUR"]
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"La moneda principal debe ser una de: {allowed}")
        return v

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validar que el entorno sea válido"""
        allowed = ["development", "testing", "production"]
        if v not in allowed:
            raise ValueError(f"El entorno debe ser uno de: {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v

    @property
    def rounding(self) -> str:
        return getattr(decimal, self.ROUNDING_MODE)


@lru_cache()
def get_settings() -> Settings:
    """
    Obtener configuración.

    Usa cache para evitar recrear la configuración en cada llamada;
    los tests llaman a get_settings.cache_clear() tras cambiar el entorno.
    """
    return Settings()


# Instancia global de configuración
settings = get_settings()

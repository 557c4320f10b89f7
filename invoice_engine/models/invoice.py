"""
Invoice enums: AFIP letters, currencies, concepts and lifecycle states.
"""
from enum import Enum


class Currency(str, Enum):
    """Monedas soportadas"""
    ARS = "ARS"  # Peso argentino
    USD = "USD"  # Dólar estadounidense
    EUR = "EUR"  # Euro


class InvoiceType(str, Enum):
    """Letra del comprobante AFIP"""
    A = "A"  # Responsable inscripto a responsable inscripto
    B = "B"  # A consumidor final / exento
    C = "C"  # Emitida por monotributista
    E = "E"  # Exportación
    M = "M"  # Emisor con controles adicionales


class InvoiceConcept(str, Enum):
    """Concepto facturado"""
    PRODUCTS = "products"
    SERVICES = "services"
    PRODUCTS_SERVICES = "products_services"

    @property
    def requires_service_dates(self) -> bool:
        return self in (InvoiceConcept.SERVICES, InvoiceConcept.PRODUCTS_SERVICES)


class InvoiceStatus(str, Enum):
    """Estado documental de la factura (flujo de emisión/aprobación)"""
    PENDING_APPROVAL = "pending_approval"  # Pendiente de aprobación
    ISSUED = "issued"                      # Emitida
    APPROVED = "approved"                  # Aprobada
    REJECTED = "rejected"                  # Rechazada
    CANCELLED = "cancelled"                # Anulada

    @property
    def accepts_settlement(self) -> bool:
        return self in (InvoiceStatus.ISSUED, InvoiceStatus.APPROVED)

    @property
    def is_void(self) -> bool:
        return self in (InvoiceStatus.REJECTED, InvoiceStatus.CANCELLED)


class SettlementState(str, Enum):
    """Estado de cancelación de la deuda"""
    ISSUED = "issued"                        # Sin cobros ni notas aplicadas
    PARTIALLY_SETTLED = "partially_settled"  # Cobro parcial
    SETTLED = "settled"                      # Saldo pendiente en cero


CURRENCY_ALIASES = {
    "pes": Currency.ARS,
    "dol": Currency.USD,
    "060": Currency.EUR,
}

INVOICE_STATUS_ALIASES = {
    "pendiente_aprobacion": InvoiceStatus.PENDING_APPROVAL,
    "emitida": InvoiceStatus.ISSUED,
    "aprobada": InvoiceStatus.APPROVED,
    "rechazada": InvoiceStatus.REJECTED,
    "cancelada": InvoiceStatus.CANCELLED,
}

CONCEPT_ALIASES = {
    "productos": InvoiceConcept.PRODUCTS,
    "servicios": InvoiceConcept.SERVICES,
    "productos_servicios": InvoiceConcept.PRODUCTS_SERVICES,
}

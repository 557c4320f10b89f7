"""
Perception enums: jurisdiction codes and the base each rate applies to.
"""
from enum import Enum


class PerceptionType(str, Enum):
    """Percepciones que un agente de percepción puede aplicar al emitir"""
    IVA = "iva"
    GANANCIAS = "ganancias"
    IMPUESTOS_INTERNOS = "impuestos_internos"
    SUSS = "suss"
    IIBB_BSAS = "iibb_bsas"
    IIBB_CABA = "iibb_caba"
    IIBB_CATAMARCA = "iibb_catamarca"
    IIBB_CHACO = "iibb_chaco"
    IIBB_CHUBUT = "iibb_chubut"
    IIBB_CORDOBA = "iibb_cordoba"
    IIBB_CORRIENTES = "iibb_corrientes"
    IIBB_ENTRERIOS = "iibb_entrerios"
    IIBB_FORMOSA = "iibb_formosa"
    IIBB_JUJUY = "iibb_jujuy"
    IIBB_LAPAMPA = "iibb_lapampa"
    IIBB_LARIOJA = "iibb_larioja"
    IIBB_MENDOZA = "iibb_mendoza"
    IIBB_MISIONES = "iibb_misiones"
    IIBB_NEUQUEN = "iibb_neuquen"
    IIBB_RIONEGRO = "iibb_rionegro"
    IIBB_SALTA = "iibb_salta"
    IIBB_SANJUAN = "iibb_sanjuan"
    IIBB_SANLUIS = "iibb_sanluis"
    IIBB_SANTACRUZ = "iibb_santacruz"
    IIBB_SANTAFE = "iibb_santafe"
    IIBB_SGO_ESTERO = "iibb_sgo_estero"
    IIBB_TDF = "iibb_tdf"
    IIBB_TUCUMAN = "iibb_tucuman"

    @property
    def is_gross_income(self) -> bool:
        return self.value.startswith("iibb_")

    @property
    def display_name(self) -> str:
        if self.is_gross_income:
            return f"Percepción IIBB {JURISDICTION_NAMES[self]}"
        return PERCEPTION_NAMES[self]


class PerceptionBase(str, Enum):
    """Base imponible sobre la que se aplica la alícuota"""
    NET = "net"      # Neto sin IVA
    TOTAL = "total"  # Total con IVA
    VAT = "vat"      # Solo IVA


PERCEPTION_NAMES = {
    PerceptionType.IVA: "Percepción IVA",
    PerceptionType.GANANCIAS: "Percepción Ganancias",
    PerceptionType.IMPUESTOS_INTERNOS: "Impuestos Internos",
    PerceptionType.SUSS: "Percepción SUSS",
}

JURISDICTION_NAMES = {
    PerceptionType.IIBB_BSAS: "Buenos Aires",
    PerceptionType.IIBB_CABA: "CABA",
    PerceptionType.IIBB_CATAMARCA: "Catamarca",
    PerceptionType.IIBB_CHACO: "Chaco",
    PerceptionType.IIBB_CHUBUT: "Chubut",
    PerceptionType.IIBB_CORDOBA: "Córdoba",
    PerceptionType.IIBB_CORRIENTES: "Corrientes",
    PerceptionType.IIBB_ENTRERIOS: "Entre Ríos",
    PerceptionType.IIBB_FORMOSA: "Formosa",
    PerceptionType.IIBB_JUJUY: "Jujuy",
    PerceptionType.IIBB_LAPAMPA: "La Pampa",
    PerceptionType.IIBB_LARIOJA: "La Rioja",
    PerceptionType.IIBB_MENDOZA: "Mendoza",
    PerceptionType.IIBB_MISIONES: "Misiones",
    PerceptionType.IIBB_NEUQUEN: "Neuquén",
    PerceptionType.IIBB_RIONEGRO: "Río Negro",
    PerceptionType.IIBB_SALTA: "Salta",
    PerceptionType.IIBB_SANJUAN: "San Juan",
    PerceptionType.IIBB_SANLUIS: "San Luis",
    PerceptionType.IIBB_SANTACRUZ: "Santa Cruz",
    PerceptionType.IIBB_SANTAFE: "Santa Fe",
    PerceptionType.IIBB_SGO_ESTERO: "Santiago del Estero",
    PerceptionType.IIBB_TDF: "Tierra del Fuego",
    PerceptionType.IIBB_TUCUMAN: "Tucumán",
}

# Códigos usados por comprobantes cargados antes de separar IIBB por jurisdicción
PERCEPTION_TYPE_ALIASES = {
    "vat_perception": PerceptionType.IVA,
    "percepcion_iva": PerceptionType.IVA,
    "percepcion_ganancias": PerceptionType.GANANCIAS,
    "percepcion_iibb": PerceptionType.IIBB_BSAS,
    "percepcion_suss": PerceptionType.SUSS,
}

PERCEPTION_BASE_ALIASES = {
    "neto": PerceptionBase.NET,
    "iva": PerceptionBase.VAT,
}

"""
Validación case-insensitive de enums, aceptando los códigos que usaban
versiones anteriores de los registros (castellano, códigos AFIP).
"""
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Type


def build_enum_lookup(enum_class: Type[Enum], aliases: Optional[Mapping[str, Enum]] = None) -> Dict[str, Enum]:
    """Tabla código en minúsculas -> miembro; valores y nombres tienen prioridad sobre los alias"""
    lookup: Dict[str, Enum] = {}
    for code, member in (aliases or {}).items():
        lookup[code.lower()] = member
    for member in enum_class:
        lookup[member.name.lower()] = member
        lookup[str(member.value).lower()] = member
    return lookup


def _resolve(value: Any, enum_class: Type[Enum], lookup: Dict[str, Enum]) -> Optional[Enum]:
    if value is None or isinstance(value, enum_class):
        return value
    if isinstance(value, str):
        member = lookup.get(value.strip().lower())
        if member is not None:
            return member
    valid_values = [item.value for item in enum_class]
    raise ValueError(f"Invalid value '{value}' for {enum_class.__name__}. Valid values are: {valid_values}")


def validate_enum_case_insensitive(
    value: Any,
    enum_class: Type[Enum],
    aliases: Optional[Mapping[str, Enum]] = None
) -> Optional[Enum]:
    """
    Convierte un string al miembro del enum sin importar mayúsculas.

    Args:
        value: Miembro del enum, su valor, su nombre o un código alternativo
        enum_class: La clase enum destino
        aliases: Códigos alternativos aceptados

    Raises:
        ValueError: Si el valor no corresponde a ningún miembro
    """
    return _resolve(value, enum_class, build_enum_lookup(enum_class, aliases))


def create_enum_validator(
    enum_class: Type[Enum],
    aliases: Optional[Mapping[str, Enum]] = None
) -> Callable[[Any], Optional[Enum]]:
    """Validador para BeforeValidator; la tabla de códigos se arma una sola vez"""
    lookup = build_enum_lookup(enum_class, aliases)

    def validator(value: Any) -> Optional[Enum]:
        return _resolve(value, enum_class, lookup)

    return validator

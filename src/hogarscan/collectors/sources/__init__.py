"""Registry of supported listing portals.

Each module defines one SourceSchema; ``SOURCE_SCHEMAS`` maps the stable
source id to it.
"""

from typing import Optional

from ..schema import SourceSchema
from .ciencuadras import CIENCUADRAS
from .fincaraiz import FINCARAIZ
from .mercadolibre import MERCADOLIBRE
from .metrocuadrado import METROCUADRADO
from .pads import PADS
from .properati import PROPERATI
from .trovit import TROVIT

SOURCE_SCHEMAS: dict[str, SourceSchema] = {
    schema.id: schema
    for schema in (
        CIENCUADRAS,
        METROCUADRADO,
        FINCARAIZ,
        MERCADOLIBRE,
        PROPERATI,
        TROVIT,
        PADS,
    )
}


def get_schema(source_id: str) -> Optional[SourceSchema]:
    return SOURCE_SCHEMAS.get(source_id)


__all__ = [
    "CIENCUADRAS",
    "FINCARAIZ",
    "MERCADOLIBRE",
    "METROCUADRADO",
    "PADS",
    "PROPERATI",
    "SOURCE_SCHEMAS",
    "TROVIT",
    "get_schema",
]

"""Reading list document parsing and rendering."""

from .mapper import map_document, section_status
from .parser import GenericDocument, Item, Section, parse
from .serializer import serialize

__all__ = [
    "GenericDocument",
    "Item",
    "Section",
    "map_document",
    "parse",
    "section_status",
    "serialize",
]

"""
Arbol navegable sobre el documento XML del feed.

Un elemento del feed puede aparecer cero, una o muchas veces. Esa diferencia
se normaliza aqui: toda busqueda de hijos retorna una lista, y el resto del
codigo nunca distingue "uno" de "varios".
"""

from __future__ import annotations

from typing import Optional
from xml.etree import ElementTree

from catalog_sync.shared.exceptions import ParseError


class FeedNode:
    """Nodo del feed (envoltorio de solo lectura sobre un Element)."""

    __slots__ = ("_element",)

    def __init__(self, element: ElementTree.Element) -> None:
        self._element = element

    def __repr__(self) -> str:
        return f"FeedNode(<{self.tag}> {dict(self._element.attrib)!r})"

    @property
    def tag(self) -> str:
        return self._element.tag

    @property
    def text(self) -> str:
        """Texto completo del nodo (incluye el de sus descendientes)."""
        return "".join(self._element.itertext())

    def attr(self, name: str) -> Optional[str]:
        return self._element.get(name)

    def has_attr(self, name: str) -> bool:
        return name in self._element.attrib

    def children(self, tag: str) -> list[FeedNode]:
        return [FeedNode(el) for el in self._element.findall(tag)]

    def first(self, tag: str) -> Optional[FeedNode]:
        el = self._element.find(tag)
        return FeedNode(el) if el is not None else None

    def child_text(self, tag: str) -> Optional[str]:
        """Texto del primer hijo `tag`, o None si no existe."""
        node = self.first(tag)
        return node.text if node is not None else None


class DocumentTree:
    """
    Documento del feed ya parseado.

    El contenedor principal es <shop>, que puede ser la raiz o un hijo directo
    de la raiz (formato YML: <yml_catalog><shop>...</shop></yml_catalog>).
    """

    def __init__(self, root: ElementTree.Element) -> None:
        self._root = FeedNode(root)

    @property
    def shop(self) -> Optional[FeedNode]:
        if self._root.tag == "shop":
            return self._root
        return self._root.first("shop")

    def collection(self, container: str, item: str) -> Optional[list[FeedNode]]:
        """
        Items de una coleccion del shop (ej. currencies/currency).

        Retorna None si falta el shop o el contenedor, y lista vacia si el
        contenedor existe sin items.
        """
        shop = self.shop
        if shop is None:
            return None
        holder = shop.first(container)
        if holder is None:
            return None
        return holder.children(item)


def parse_document(raw: bytes) -> DocumentTree:
    """
    Parsea los bytes del feed.

    Se respeta el encoding declarado en el prologo XML (los exports de
    catalogos suelen venir en windows-1251). ElementTree no resuelve
    entidades externas.
    """
    if not raw or not raw.strip():
        raise ParseError("El feed esta vacio")
    try:
        root = ElementTree.fromstring(raw)
    except ElementTree.ParseError as e:
        raise ParseError(f"Error parseando XML del feed: {e}") from e
    return DocumentTree(root)

"""
Cache del documento del feed.

El sync trabaja con el ultimo documento descargado: no se vuelve a descargar
en cada llamada. El caller decide cuando refrescar (`refresh()`).
"""

from __future__ import annotations

from typing import Callable, Optional

from loguru import logger

from .document import DocumentTree, parse_document
from .feed_client import FeedClient


DocumentLoader = Callable[[], DocumentTree]


class FeedDocumentCache:
    def __init__(self, loader: DocumentLoader) -> None:
        self._loader = loader
        self._tree: Optional[DocumentTree] = None

    @classmethod
    def from_client(cls, client: FeedClient) -> "FeedDocumentCache":
        return cls(lambda: parse_document(client.fetch_document()))

    @property
    def loaded(self) -> bool:
        return self._tree is not None

    def get(self) -> DocumentTree:
        """Retorna el documento, descargandolo la primera vez."""
        if self._tree is None:
            self._tree = self._loader()
        return self._tree

    def refresh(self) -> DocumentTree:
        """Descarta el documento cacheado y lo vuelve a cargar."""
        logger.info("Refrescando documento del feed")
        self._tree = None
        return self.get()

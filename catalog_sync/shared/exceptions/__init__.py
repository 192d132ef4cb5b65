"""
Excepciones de la aplicacion.
"""
from catalog_sync.shared.exceptions.base import AppException
from catalog_sync.shared.exceptions.sync import (
    FeedRecordError,
    FetchError,
    ParseError,
    SchemaDriftError,
    StoreError,
    SyncFailure,
    UnknownEntityKind,
)

__all__ = [
    "AppException",
    "FeedRecordError",
    "FetchError",
    "ParseError",
    "SchemaDriftError",
    "StoreError",
    "SyncFailure",
    "UnknownEntityKind",
]

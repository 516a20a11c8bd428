"""Utility modules for the item checker."""
from .logger import get_logger, setup_logging, set_level
from .exceptions import (
    ItemCheckError,
    ConfigError,
    NetworkError,
    ProxyExhausted,
    ManifestError,
    ManifestChunkNotFound,
    ExtractionError,
    ParseNoResult,
    NotFound,
    DictionaryError,
)

__all__ = [
    # Logger
    'get_logger',
    'setup_logging',
    'set_level',
    # Exceptions
    'ItemCheckError',
    'ConfigError',
    'NetworkError',
    'ProxyExhausted',
    'ManifestError',
    'ManifestChunkNotFound',
    'ExtractionError',
    'ParseNoResult',
    'NotFound',
    'DictionaryError',
]

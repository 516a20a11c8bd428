"""
Custom exceptions for the item checker.

Usage:
    from itemcheck.utils.exceptions import ProxyExhausted, NotFound

    raise ProxyExhausted(url, attempts=attempts, stage="manifest", cause=last_error)
"""
from typing import Optional, Dict, Any, List, Tuple


class ItemCheckError(Exception):
    """Base exception for all item checker errors."""

    def __init__(
        self,
        message: str,
        *,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


class ConfigError(ItemCheckError):
    """Error in configuration."""

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, cause=cause, details=details)
        self.config_key = config_key
        self.expected_type = expected_type
        if config_key:
            self.details["config_key"] = config_key
        if expected_type:
            self.details["expected_type"] = expected_type


class NetworkError(ItemCheckError):
    """Error while fetching a remote resource."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        stage: Optional[str] = None,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, cause=cause, details=details)
        self.url = url
        self.stage = stage
        if url:
            self.details["url"] = url
        if stage:
            self.details["stage"] = stage


class ProxyExhausted(NetworkError):
    """Every relay in the list failed for one target URL."""

    def __init__(
        self,
        url: str,
        *,
        attempts: Optional[List[Tuple[str, str]]] = None,
        stage: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        attempts = list(attempts or [])
        label = f" ({stage})" if stage else ""
        super().__init__(
            f"All {len(attempts)} relays failed for {url}{label}",
            url=url,
            stage=stage,
            cause=cause,
        )
        self.attempts = attempts


class ManifestError(ItemCheckError):
    """Asset manifest is missing or malformed."""

    def __init__(
        self,
        message: str,
        *,
        manifest_url: Optional[str] = None,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, cause=cause, details=details)
        self.manifest_url = manifest_url
        if manifest_url:
            self.details["manifest_url"] = manifest_url


class ManifestChunkNotFound(ManifestError):
    """No manifest key matched a requested chunk id."""

    def __init__(self, chunk_id: str, *, manifest_url: Optional[str] = None):
        super().__init__(
            f"Chunk {chunk_id} not found in manifest",
            manifest_url=manifest_url,
            details={"chunk_id": chunk_id},
        )
        self.chunk_id = chunk_id


class ExtractionError(ItemCheckError):
    """Error while mining names out of bundle text."""


class ParseNoResult(ExtractionError):
    """An extractor found nothing plausible."""

    def __init__(self, strategy: str, reason: str = "no plausible list"):
        super().__init__(
            f"{strategy}: {reason}",
            details={"strategy": strategy},
        )
        self.strategy = strategy
        self.reason = reason


class NotFound(ExtractionError):
    """
    No chunk/strategy combination produced a plausible item list.

    ``kind`` is "network" when no chunk text could be fetched at all and
    "structure" when chunks were fetched but nothing parsed.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str = "structure",
        chunks: Optional[List[Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message, cause=cause, details={"kind": kind})
        self.kind = kind
        self.chunks = list(chunks or [])


class DictionaryError(ItemCheckError):
    """Translation dictionary payload is unusable."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, cause=cause, details=details)
        self.source = source
        if source:
            self.details["source"] = source

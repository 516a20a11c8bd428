"""
Asset manifest resolver.

The game ships an ``asset-manifest.json`` whose ``files`` field maps
logical names to hash-versioned paths. Bundle chunks appear under keys
like ``static/js/<name>.<chunkId>.<hash>.chunk.js``.

If several keys match one chunk id, the first in manifest order wins.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlsplit

import requests

from .proxy import Proxy, fetch_through_proxies
from ..utils.exceptions import ManifestError, ManifestChunkNotFound
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChunkReference:
    """One bundle chunk located through the manifest."""
    chunk_id: str
    url: str


def chunk_key_pattern(chunk_id: str) -> "re.Pattern[str]":
    return re.compile(rf"^static/js/.*\.{re.escape(chunk_id)}\.[a-f0-9]+\.chunk\.js$")


def find_chunk_key(files: Dict[str, Any], chunk_id: str) -> Optional[str]:
    """First ``files`` key naming the given chunk, or None."""
    pattern = chunk_key_pattern(chunk_id)
    for key in files:
        if pattern.match(key):
            return key
    return None


def origin_of(url: str) -> str:
    """scheme://host[:port] of a URL."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Not an absolute URL: {url}")
    return f"{parts.scheme}://{parts.netloc}"


def manifest_files(manifest: Any, manifest_url: Optional[str] = None) -> Dict[str, Any]:
    """Validate a parsed manifest and return its ``files`` mapping."""
    if not isinstance(manifest, dict):
        raise ManifestError("Manifest is not a JSON object", manifest_url=manifest_url)
    files = manifest.get("files")
    if not isinstance(files, dict):
        raise ManifestError("Manifest has no 'files' mapping", manifest_url=manifest_url)
    return files


def resolve_chunks(
    manifest: Any,
    chunk_ids: Sequence[str],
    base_url: str,
    manifest_url: Optional[str] = None
) -> Tuple[List[ChunkReference], List[ManifestChunkNotFound]]:
    """
    Resolve chunk ids against an already parsed manifest.

    Returns:
        (references in chunk_ids order, misses for ids with no matching key)

    Raises:
        ManifestError: If the manifest has no ``files`` mapping
    """
    files = manifest_files(manifest, manifest_url)
    origin = origin_of(base_url)

    references: List[ChunkReference] = []
    misses: List[ManifestChunkNotFound] = []

    for chunk_id in chunk_ids:
        key = find_chunk_key(files, chunk_id)
        path = files.get(key) if key else None
        if not isinstance(path, str) or not path:
            miss = ManifestChunkNotFound(chunk_id, manifest_url=manifest_url)
            logger.warning(str(miss))
            misses.append(miss)
            continue

        url = urljoin(origin + "/", path)
        logger.debug(f"Chunk {chunk_id}: {key} -> {url}")
        references.append(ChunkReference(chunk_id=chunk_id, url=url))

    return references, misses


def fetch_manifest(
    manifest_url: str,
    proxies: Sequence[Proxy],
    *,
    session: Optional[requests.Session] = None,
    timeout: float = 30.0
) -> Dict[str, Any]:
    """
    Fetch and validate the manifest.

    Raises:
        ProxyExhausted: If no relay delivered JSON
        ManifestError: If the JSON has no ``files`` mapping
    """
    logger.info(f"Fetching manifest {manifest_url}...")
    manifest = fetch_through_proxies(
        manifest_url, proxies, expect="json", session=session, timeout=timeout, stage="manifest"
    )
    manifest_files(manifest, manifest_url)
    return manifest


def resolve_chunk_urls(
    manifest_url: str,
    chunk_ids: Sequence[str],
    proxies: Sequence[Proxy],
    *,
    base_url: Optional[str] = None,
    session: Optional[requests.Session] = None,
    timeout: float = 30.0
) -> List[ChunkReference]:
    """
    Fetch the manifest and locate the requested chunks.

    Chunk ids without a matching key are logged and skipped, so the
    result may be shorter than ``chunk_ids`` or empty.

    Args:
        manifest_url: URL of asset-manifest.json
        chunk_ids: Chunk ids in priority order
        proxies: Relay functions
        base_url: Site origin for relative paths (defaults to the manifest's origin)
    """
    manifest = fetch_manifest(manifest_url, proxies, session=session, timeout=timeout)
    references, _ = resolve_chunks(manifest, chunk_ids, base_url or manifest_url, manifest_url)
    return references

"""
Network access: relay fetching and manifest resolution.

Usage:
    from itemcheck.net import build_proxies, resolve_chunk_urls

    proxies = build_proxies(config.network.game_proxies)
    chunks = resolve_chunk_urls(config.extraction.manifest_url, ["3", "32"], proxies)
"""

from .proxy import (
    Proxy,
    build_proxies,
    create_session,
    fetch_through_proxies,
    looks_like_html,
    proxy_from_template,
)
from .manifest import (
    ChunkReference,
    fetch_manifest,
    find_chunk_key,
    resolve_chunk_urls,
    resolve_chunks,
)

__all__ = [
    'Proxy',
    'build_proxies',
    'create_session',
    'fetch_through_proxies',
    'looks_like_html',
    'proxy_from_template',
    'ChunkReference',
    'fetch_manifest',
    'find_chunk_key',
    'resolve_chunk_urls',
    'resolve_chunks',
]

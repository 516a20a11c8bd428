"""
Translation dictionary loading.

The community wiki keeps the translations as one JSON object,
``{"Dirt": "土", ...}``, served raw from a MediaWiki page.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import requests

from ..net.proxy import Proxy, fetch_through_proxies
from ..utils.exceptions import DictionaryError
from ..utils.logger import get_logger

logger = get_logger(__name__)


def parse_dictionary(payload: Any, source: Optional[str] = None) -> Dict[str, str]:
    """
    Validate a decoded dictionary payload.

    Entries whose key or value is not a string are dropped.

    Raises:
        DictionaryError: If the payload is not a JSON object
    """
    if not isinstance(payload, dict):
        raise DictionaryError(
            f"Dictionary must be a JSON object, got {type(payload).__name__}",
            source=source,
        )

    translations = {k: v for k, v in payload.items() if isinstance(k, str) and isinstance(v, str)}
    dropped = len(payload) - len(translations)
    if dropped:
        logger.warning(f"Dropped {dropped} non-string dictionary entries from {source or 'payload'}")
    return translations


def load_dictionary(
    url: str,
    proxies: Sequence[Proxy],
    *,
    session: Optional[requests.Session] = None,
    timeout: float = 30.0
) -> Dict[str, str]:
    """
    Fetch the dictionary through the relay list.

    HTML pages and non-JSON bodies count as a failed relay.

    Raises:
        ProxyExhausted: If no relay delivered JSON
        DictionaryError: If the JSON is not an object
    """
    payload = fetch_through_proxies(
        url, proxies, expect="json", session=session, timeout=timeout, stage="dictionary"
    )
    translations = parse_dictionary(payload, source=url)
    logger.info(f"Loaded {len(translations)} translations")
    return translations


def load_dictionary_file(path: str) -> Dict[str, str]:
    """
    Read the dictionary from a local JSON file.

    Raises:
        DictionaryError: If the file is unreadable or not a JSON object
    """
    file_path = Path(path)
    try:
        with open(file_path, 'r', encoding='utf-8-sig') as f:
            payload = json.load(f)
    except (OSError, ValueError) as e:
        raise DictionaryError(f"Cannot read dictionary file {file_path}", source=str(file_path), cause=e) from e

    translations = parse_dictionary(payload, source=str(file_path))
    logger.info(f"Loaded {len(translations)} translations from {file_path}")
    return translations

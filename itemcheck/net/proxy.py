"""
Relay fetcher.

Fetches a URL by trying an ordered list of relay endpoints, one GET per
relay, until one answers with a usable body. Relays are third-party
infrastructure we do not control, so every attempt is logged and the
final error names the stage and every relay that was tried.

Usage:
    from itemcheck.net.proxy import build_proxies, fetch_through_proxies

    proxies = build_proxies(["{raw}", "https://api.allorigins.win/raw?url={url}"])
    manifest = fetch_through_proxies(url, proxies, expect="json", stage="manifest")
"""

import json
from typing import Any, Callable, List, Literal, Optional, Sequence, Tuple
from urllib.parse import quote

import requests

from ..utils.exceptions import ProxyExhausted
from ..utils.logger import get_logger

logger = get_logger(__name__)

Proxy = Callable[[str], str]
Expect = Literal["text", "json"]


def proxy_from_template(template: str) -> Proxy:
    """
    Build a URL-rewriting function from a relay template.

    ``{url}`` is replaced by the percent-encoded target, ``{raw}`` by the
    target unchanged.
    """
    if "{url}" not in template and "{raw}" not in template:
        raise ValueError(f"Relay template has no {{url}} or {{raw}} placeholder: {template}")

    def rewrite(target_url: str) -> str:
        return (template
                .replace("{url}", quote(target_url, safe=""))
                .replace("{raw}", target_url))

    rewrite.__name__ = f"relay<{template}>"
    return rewrite


def build_proxies(templates: Sequence[str]) -> List[Proxy]:
    """Build relay functions for every template, keeping order."""
    return [proxy_from_template(t) for t in templates]


def create_session(user_agent: Optional[str] = None) -> requests.Session:
    """HTTP session with the configured User-Agent."""
    session = requests.Session()
    if user_agent:
        session.headers["User-Agent"] = user_agent
    return session


def looks_like_html(body: str) -> bool:
    """True for relay error pages and interstitials."""
    head = body.lstrip()[:16].lower()
    return head.startswith("<!doctype") or head.startswith("<html")


def fetch_through_proxies(
    target_url: str,
    proxies: Sequence[Proxy],
    *,
    expect: Expect = "text",
    session: Optional[requests.Session] = None,
    timeout: float = 30.0,
    stage: Optional[str] = None
) -> Any:
    """
    Fetch ``target_url`` through the first relay that works.

    A relay is accepted only when the request succeeds, the status is
    2xx, the body is not an HTML page and, for ``expect="json"``, the
    body parses as JSON. Relays are tried strictly in order, once each.

    Args:
        target_url: URL to fetch
        proxies: Ordered URL-rewriting functions
        expect: "text" returns the body string, "json" the parsed value
        session: Optional requests session (one is created if omitted)
        timeout: Per-request timeout in seconds
        stage: Label for logs and errors (manifest, chunk, dictionary)

    Returns:
        Body text or parsed JSON

    Raises:
        ProxyExhausted: If every relay failed
    """
    label = stage or "fetch"
    attempts: List[Tuple[str, str]] = []
    last_error: Optional[Exception] = None

    owns_session = session is None
    http = session or create_session()

    try:
        for index, proxy in enumerate(proxies, 1):
            proxy_url = proxy(target_url)
            logger.info(f"[{label}] Trying relay {index}/{len(proxies)}: {proxy_url}")

            try:
                response = http.get(proxy_url, timeout=timeout)
            except requests.RequestException as e:
                logger.warning(f"[{label}] Relay {index} failed: {e}")
                attempts.append((proxy_url, f"transport error: {e}"))
                last_error = e
                continue

            if not 200 <= response.status_code < 300:
                reason = f"HTTP {response.status_code}"
                logger.warning(f"[{label}] Relay {index} returned {reason}")
                attempts.append((proxy_url, reason))
                last_error = requests.HTTPError(reason)
                continue

            body = response.text
            if looks_like_html(body):
                logger.warning(f"[{label}] Relay {index} returned an HTML page, trying next...")
                attempts.append((proxy_url, "HTML page instead of content"))
                last_error = ValueError("HTML page instead of content")
                continue

            if expect == "json":
                try:
                    payload = json.loads(body)
                except ValueError as e:
                    logger.warning(f"[{label}] Relay {index} returned invalid JSON: {e}")
                    attempts.append((proxy_url, f"invalid JSON: {e}"))
                    last_error = e
                    continue
                logger.info(f"[{label}] Relay {index} succeeded")
                return payload

            logger.info(f"[{label}] Relay {index} succeeded ({len(body)} chars)")
            return body
    finally:
        if owns_session:
            http.close()

    logger.error(f"[{label}] All relays failed for {target_url}")
    raise ProxyExhausted(target_url, attempts=attempts, stage=stage, cause=last_error)

"""
Shared fixtures: canned bundle text and an offline HTTP session.
"""
import sys
import threading
from pathlib import Path
from types import SimpleNamespace

import pytest
import requests

sys.path.insert(0, str(Path(__file__).parent.parent))

from itemcheck.utils.config import ExtractionTables

GAME = "https://bloxd.io"
MANIFEST_URL = f"{GAME}/asset-manifest.json"
CHUNK_3_KEY = "static/js/items.3.abc123.chunk.js"
CHUNK_32_KEY = "static/js/blocks.32.def456.chunk.js"
DICTIONARY_URL = "https://wiki.example/ItemName.json"


class FakeHTTP:
    """
    Stand-in for requests.Session.

    ``routes`` maps a URL to a body string, a (status, body) pair, or an
    exception instance to raise. Unknown URLs answer 404.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []
        self.closed = False
        self._lock = threading.Lock()

    def get(self, url, timeout=None):
        with self._lock:
            self.calls.append(url)
        route = self.routes.get(url, (404, "not found"))
        if isinstance(route, Exception):
            raise route
        if isinstance(route, tuple):
            status, body = route
        else:
            status, body = 200, route
        return SimpleNamespace(status_code=status, text=body)

    def close(self):
        self.closed = True


def enum_chunk(count=150, first="Unloaded"):
    """Bundle text holding ``{<first>:0,Item1:1,...}``."""
    entries = [f"{first}:0"] + [f"Item{i}:{i}" for i in range(1, count + 1)]
    return 'var a=1;const T={' + ",".join(entries) + '};function f(){return T}'


@pytest.fixture
def tables():
    return ExtractionTables(
        sentinels=("Unloaded",),
        array_keywords=("Dirt", "Stone", "Wood", "Grass Block", "Air"),
        definition_markers=("textureInfo",),
        property_denylist=("displayName", "translationKey", "ttb", "textureInfo"),
        reserved_prefixes=("placeholder", "debug"),
        palettes={"colors": ("White", "Black"), "creatures": ("Cow", "Pig")},
        palette_hints={"creatures": ("Spawn", "Capsule")},
        default_palette="colors",
        suffix_palettes={"colors": ("Wool",)},
        implied_variants={"Bucket": ("Water Bucket",)},
    )


@pytest.fixture
def manifest_json():
    return (
        '{"files": {"main.js": "/static/js/main.0f0f.js", '
        f'"{CHUNK_3_KEY}": "/{CHUNK_3_KEY}", '
        f'"{CHUNK_32_KEY}": "/{CHUNK_32_KEY}"}}}}'
    )


@pytest.fixture
def make_http():
    return FakeHTTP


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    """Fail loudly if anything reaches for a real socket."""
    def refuse(*args, **kwargs):
        raise AssertionError("network access in tests")
    monkeypatch.setattr(requests.Session, "get", refuse)

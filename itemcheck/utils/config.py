"""
Configuration and path constants for the item checker.

Supports:
- Environment variables
- .env file (auto-loaded)
- YAML config file (optional)
- YAML extraction tables (sentinels, keywords, palettes, ...)

Usage:
    from itemcheck.utils.config import Config, load_tables, MANIFEST_URL

    config = Config.load("itemcheck.yaml")
    tables = load_tables()
"""
import os
from pathlib import Path
from types import MappingProxyType
from typing import Optional, Dict, Any, List, Tuple, Mapping
from dataclasses import dataclass, field, asdict

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigError

# =============================================================================
# PATH CONSTANTS (computed at import)
# =============================================================================

SCRIPT_DIR: str = os.path.dirname(os.path.abspath(__file__))
PACKAGE_DIR: str = os.path.dirname(SCRIPT_DIR)  # itemcheck/
REPO_ROOT: str = os.path.dirname(PACKAGE_DIR)
DATA_DIR: str = os.path.join(PACKAGE_DIR, "data")
TABLES_FILE: str = os.path.join(DATA_DIR, "tables.yaml")


# =============================================================================
# ENV FILE LOADING
# =============================================================================

load_dotenv(Path(REPO_ROOT) / ".env")


# =============================================================================
# REMOTE ENDPOINTS
# =============================================================================

GAME_BASE_URL: str = os.environ.get("ITEMCHECK_GAME_URL", "https://bloxd.io").rstrip("/")
MANIFEST_URL: str = os.environ.get("ITEMCHECK_MANIFEST_URL", f"{GAME_BASE_URL}/asset-manifest.json")
DICTIONARY_URL: str = os.environ.get(
    "ITEMCHECK_DICTIONARY_URL",
    "https://bloxdjapan.miraheze.org/wiki/MediaWiki:ItemName.json?action=raw",
)
LOG_LEVEL: str = os.environ.get("ITEMCHECK_LOG_LEVEL", "INFO")

# Relay templates: {url} is the percent-encoded target, {raw} the target as-is.
# The first entry is a direct request; relays follow in priority order.
GAME_PROXIES: List[str] = [
    "{raw}",
    "https://api.codetabs.com/v1/proxy?quest={url}",
    "https://api.allorigins.win/raw?url={url}",
    "https://corsproxy.io/?{url}",
]

DICTIONARY_PROXIES: List[str] = [
    "{raw}",
    "https://api.allorigins.win/raw?url={url}",
    "https://api.codetabs.com/v1/proxy?quest={url}",
    "https://corsproxy.io/?{url}",
    "https://cors-anywhere.herokuapp.com/{raw}",
]

DEFAULT_CHUNK_IDS: List[str] = ["3", "32"]
DEFAULT_STRATEGIES: List[str] = ["anchor", "sequential", "string_array", "definitions"]

# A strategy result is plausible when its length exceeds this
DEFAULT_THRESHOLDS: Dict[str, int] = {
    "anchor": 100,
    "sequential": 100,
    "string_array": 49,  # arrays of 50 strings are accepted
    "definitions": 20,
}

MERGE_POLICIES = ("first", "longest")


# =============================================================================
# CONFIG CLASSES
# =============================================================================

@dataclass
class NetworkConfig:
    """Relay and HTTP settings."""
    timeout: float = 30.0
    user_agent: str = "itemcheck/1.0"
    game_proxies: List[str] = field(default_factory=lambda: list(GAME_PROXIES))
    dictionary_proxies: List[str] = field(default_factory=lambda: list(DICTIONARY_PROXIES))


@dataclass
class ExtractionConfig:
    """Bundle mining settings."""
    manifest_url: str = MANIFEST_URL
    base_url: str = GAME_BASE_URL
    chunk_ids: List[str] = field(default_factory=lambda: list(DEFAULT_CHUNK_IDS))
    strategies: List[str] = field(default_factory=lambda: list(DEFAULT_STRATEGIES))
    thresholds: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_THRESHOLDS))
    merge_policy: str = "first"


@dataclass
class DictionaryConfig:
    """Translation dictionary source."""
    url: str = DICTIONARY_URL
    file: Optional[str] = None


@dataclass
class SessionConfig:
    """Session loading policy."""
    concurrent_loading: bool = False


@dataclass
class Config:
    """Main configuration class."""

    network: NetworkConfig = field(default_factory=NetworkConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    dictionary: DictionaryConfig = field(default_factory=DictionaryConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    tables_file: str = TABLES_FILE

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file. If None or missing, uses defaults.

        Returns:
            Config instance

        Raises:
            ConfigError: If the file is not valid YAML or has wrong types
        """
        config = cls()

        if config_path is None:
            return config

        path = Path(config_path)
        if not path.exists():
            return config

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}", cause=e) from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping: {path}", expected_type="mapping")

        if 'network' in data:
            n = _section(data, 'network')
            config.network.timeout = float(n.get('timeout', config.network.timeout))
            config.network.user_agent = n.get('user_agent', config.network.user_agent)
            config.network.game_proxies = _str_list(n, 'game_proxies', config.network.game_proxies)
            config.network.dictionary_proxies = _str_list(
                n, 'dictionary_proxies', config.network.dictionary_proxies
            )

        if 'extraction' in data:
            e = _section(data, 'extraction')
            config.extraction.manifest_url = e.get('manifest_url', config.extraction.manifest_url)
            config.extraction.base_url = e.get('base_url', config.extraction.base_url)
            config.extraction.chunk_ids = [
                str(c) for c in _str_list(e, 'chunk_ids', config.extraction.chunk_ids)
            ]
            config.extraction.strategies = _str_list(e, 'strategies', config.extraction.strategies)
            thresholds = e.get('thresholds') or {}
            if not isinstance(thresholds, dict):
                raise ConfigError("extraction.thresholds must be a mapping",
                                  config_key="extraction.thresholds", expected_type="mapping")
            config.extraction.thresholds.update({k: int(v) for k, v in thresholds.items()})
            policy = e.get('merge_policy', config.extraction.merge_policy)
            if policy not in MERGE_POLICIES:
                raise ConfigError(f"Unknown merge policy: {policy}",
                                  config_key="extraction.merge_policy",
                                  expected_type=" | ".join(MERGE_POLICIES))
            config.extraction.merge_policy = policy

        if 'dictionary' in data:
            d = _section(data, 'dictionary')
            config.dictionary.url = d.get('url', config.dictionary.url)
            config.dictionary.file = d.get('file', config.dictionary.file)

        if 'session' in data:
            s = _section(data, 'session')
            config.session.concurrent_loading = bool(
                s.get('concurrent_loading', config.session.concurrent_loading)
            )

        if 'tables_file' in data:
            config.tables_file = str(data['tables_file'])

        return config

    def save(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(asdict(self), f, default_flow_style=False, allow_unicode=True)


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Section '{key}' must be a mapping", config_key=key, expected_type="mapping")
    return value


def _str_list(section: Dict[str, Any], key: str, default: List[str]) -> List[str]:
    value = section.get(key)
    if value is None:
        return list(default)
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list", config_key=key, expected_type="list")
    return [str(v) for v in value]


# =============================================================================
# EXTRACTION TABLES
# =============================================================================

@dataclass(frozen=True)
class ExtractionTables:
    """Domain knowledge used by the extractors, loaded from YAML."""
    sentinels: Tuple[str, ...] = ("Unloaded",)
    array_keywords: Tuple[str, ...] = ("Dirt", "Stone", "Wood", "Grass Block", "Air")
    definition_markers: Tuple[str, ...] = ("textureInfo",)
    property_denylist: Tuple[str, ...] = ()
    reserved_prefixes: Tuple[str, ...] = ()
    palettes: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    palette_hints: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    default_palette: Optional[str] = None
    suffix_palettes: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))
    implied_variants: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))

    def palette_for(self, *literals: str) -> Tuple[str, ...]:
        """Pick the palette whose hint words appear in the given literals."""
        text = " ".join(literals)
        for palette, hints in self.palette_hints.items():
            if any(hint in text for hint in hints):
                return self.palettes.get(palette, ())
        if self.default_palette:
            return self.palettes.get(self.default_palette, ())
        return ()

    def palette_for_suffix(self, suffix: str) -> Tuple[str, ...]:
        """Palette a bare suffix is known to be concatenated onto, or ()."""
        word = " ".join(suffix.split())
        for palette, suffixes in self.suffix_palettes.items():
            if word in suffixes:
                return self.palettes.get(palette, ())
        return ()


def load_tables(tables_path: Optional[str] = None) -> ExtractionTables:
    """
    Load extraction tables from YAML.

    Args:
        tables_path: Path to tables YAML. Defaults to the packaged data/tables.yaml.

    Raises:
        ConfigError: If the file is missing or malformed
    """
    path = Path(tables_path or TABLES_FILE)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read extraction tables: {path}", cause=e) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}", cause=e) from e

    if not isinstance(data, dict):
        raise ConfigError(f"Tables root must be a mapping: {path}", expected_type="mapping")

    def strings(key: str, default: Tuple[str, ...] = ()) -> Tuple[str, ...]:
        value = data.get(key)
        if value is None:
            return default
        if not isinstance(value, list):
            raise ConfigError(f"'{key}' must be a list", config_key=key, expected_type="list")
        return tuple(str(v) for v in value)

    def groups(key: str) -> Mapping[str, Tuple[str, ...]]:
        value = data.get(key) or {}
        if not isinstance(value, dict):
            raise ConfigError(f"'{key}' must be a mapping", config_key=key, expected_type="mapping")
        return MappingProxyType({str(k): tuple(str(v) for v in (vals or [])) for k, vals in value.items()})

    defaults = ExtractionTables()
    palettes = groups('palettes')
    default_palette = data.get('default_palette')
    if default_palette is not None and default_palette not in palettes:
        raise ConfigError(f"default_palette '{default_palette}' is not a known palette",
                          config_key='default_palette')
    suffix_palettes = groups('suffix_palettes')
    for palette in suffix_palettes:
        if palette not in palettes:
            raise ConfigError(f"suffix_palettes names unknown palette '{palette}'",
                              config_key='suffix_palettes')

    return ExtractionTables(
        sentinels=strings('sentinels', defaults.sentinels),
        array_keywords=strings('array_keywords', defaults.array_keywords),
        definition_markers=strings('definition_markers', defaults.definition_markers),
        property_denylist=strings('property_denylist'),
        reserved_prefixes=strings('reserved_prefixes'),
        palettes=palettes,
        palette_hints=groups('palette_hints'),
        default_palette=default_palette,
        suffix_palettes=suffix_palettes,
        implied_variants=groups('implied_variants'),
    )

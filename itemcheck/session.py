"""
Checker session: the item list and dictionary currently in use.

Both values are replaced wholesale when a refresh succeeds and kept
as they were when it fails. Each refresh takes a generation ticket; a
run that finishes after a later-started run has already committed is
discarded, so a slow stale response never overwrites a fresh one.

Usage:
    from itemcheck.session import CheckerSession

    session = CheckerSession()
    session.refresh()
    print(session.stats())
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import requests

from .extractors.pipeline import ChunkPlan, ExtractionPipeline, PipelineResult
from .net.proxy import build_proxies, create_session
from .translations.coverage import CoverageReport, MissingRun, compare, missing_runs
from .translations.dictionary import load_dictionary, load_dictionary_file
from .utils.config import Config, ExtractionTables, load_tables
from .utils.exceptions import (
    DictionaryError,
    ItemCheckError,
    ManifestError,
    NetworkError,
    NotFound,
)
from .utils.logger import get_logger

logger = get_logger(__name__)

ITEMS = "items"
DICTIONARY = "dictionary"


def describe_failure(exc: BaseException) -> str:
    """
    Human-readable diagnostic telling network trouble from content changes.
    """
    if isinstance(exc, NotFound):
        if exc.kind == "network":
            return f"manifest/network problem: no bundle chunk could be fetched ({exc.message})"
        return f"parse/structure problem: {exc.message}"
    if isinstance(exc, NetworkError):
        stage = exc.stage or "fetch"
        return f"manifest/network problem: {stage} unreachable through every relay ({exc.message})"
    if isinstance(exc, ManifestError):
        return f"manifest/network problem: {exc.message}"
    if isinstance(exc, DictionaryError):
        return f"parse/structure problem: {exc.message}"
    if isinstance(exc, ItemCheckError):
        return exc.message
    return f"unexpected error: {exc}"


@dataclass
class LoadStatus:
    """Status of one data source."""
    state: str = "idle"  # idle, loading, success, error
    message: str = ""
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class SessionStats:
    game_count: int
    dictionary_count: int
    missing_count: int
    coverage: float
    last_update: Optional[datetime]


class CheckerSession:
    """Owns the current item list and dictionary."""

    def __init__(
        self,
        config: Optional[Config] = None,
        tables: Optional[ExtractionTables] = None,
        http: Optional[requests.Session] = None
    ):
        self.config = config or Config.load()
        self.tables = tables or load_tables(self.config.tables_file)
        self._http = http

        self._items: Tuple[str, ...] = ()
        self._translations: Mapping[str, str] = MappingProxyType({})
        self.last_pipeline: Optional[PipelineResult] = None
        self.last_update: Optional[datetime] = None
        self.status: Dict[str, LoadStatus] = {ITEMS: LoadStatus(), DICTIONARY: LoadStatus()}

        self._lock = threading.Lock()
        self._issued = {ITEMS: 0, DICTIONARY: 0}
        self._committed = {ITEMS: 0, DICTIONARY: 0}

    @property
    def items(self) -> Tuple[str, ...]:
        return self._items

    @property
    def translations(self) -> Mapping[str, str]:
        return self._translations

    def _http_context(self):
        if self._http is not None:
            return nullcontext(self._http)
        return create_session(self.config.network.user_agent)

    def _begin(self, kind: str) -> int:
        with self._lock:
            self._issued[kind] += 1
            ticket = self._issued[kind]
            self.status[kind] = LoadStatus(state="loading", message="loading...")
        return ticket

    def _commit(self, kind: str, ticket: int, apply: Callable[[], None], message: str) -> bool:
        with self._lock:
            if ticket < self._committed[kind]:
                logger.warning(f"Discarding stale {kind} run #{ticket} (#{self._committed[kind]} already committed)")
                return False
            self._committed[kind] = ticket
            apply()
            now = datetime.now()
            self.last_update = now
            self.status[kind] = LoadStatus(state="success", message=message, updated_at=now)
        logger.info(f"{kind}: {message}")
        return True

    def _fail(self, kind: str, ticket: int, exc: BaseException) -> None:
        diagnostic = describe_failure(exc)
        logger.error(f"{kind} refresh #{ticket} failed: {diagnostic}")
        with self._lock:
            if ticket >= self._committed[kind]:
                self.status[kind] = LoadStatus(state="error", message=diagnostic, updated_at=datetime.now())

    def chunk_plan(self) -> List[ChunkPlan]:
        strategies = tuple(self.config.extraction.strategies)
        return [ChunkPlan(chunk_id, strategies) for chunk_id in self.config.extraction.chunk_ids]

    def refresh_items(self) -> bool:
        """Mine a fresh item list. Returns whether it was committed."""
        ticket = self._begin(ITEMS)
        extraction = self.config.extraction
        network = self.config.network

        try:
            with self._http_context() as http:
                pipeline = ExtractionPipeline(
                    self.tables,
                    build_proxies(network.game_proxies),
                    thresholds=extraction.thresholds,
                    merge_policy=extraction.merge_policy,
                    session=http,
                    timeout=network.timeout,
                )
                result = pipeline.run(extraction.manifest_url, self.chunk_plan(), base_url=extraction.base_url)
        except ItemCheckError as e:
            self._fail(ITEMS, ticket, e)
            return False

        def apply() -> None:
            self._items = result.items
            self.last_pipeline = result

        return self._commit(ITEMS, ticket, apply, f"{len(result.items)} items (bundle order)")

    def refresh_dictionary(self) -> bool:
        """Load a fresh dictionary. Returns whether it was committed."""
        ticket = self._begin(DICTIONARY)
        source = self.config.dictionary
        network = self.config.network

        try:
            if source.file:
                translations = load_dictionary_file(source.file)
            else:
                with self._http_context() as http:
                    translations = load_dictionary(
                        source.url,
                        build_proxies(network.dictionary_proxies),
                        session=http,
                        timeout=network.timeout,
                    )
        except ItemCheckError as e:
            self._fail(DICTIONARY, ticket, e)
            return False

        def apply() -> None:
            self._translations = MappingProxyType(dict(translations))

        return self._commit(DICTIONARY, ticket, apply, f"{len(translations)} translations loaded")

    def refresh(self, concurrent: Optional[bool] = None) -> Dict[str, bool]:
        """
        Refresh both sources.

        Sequential by default so the item order is settled first;
        concurrent when ``concurrent`` (or the session config) says so.
        """
        if concurrent is None:
            concurrent = self.config.session.concurrent_loading

        if not concurrent:
            return {ITEMS: self.refresh_items(), DICTIONARY: self.refresh_dictionary()}

        with ThreadPoolExecutor(max_workers=2) as executor:
            items_future = executor.submit(self.refresh_items)
            dictionary_future = executor.submit(self.refresh_dictionary)
            return {ITEMS: items_future.result(), DICTIONARY: dictionary_future.result()}

    def report(self) -> CoverageReport:
        return compare(self._items, self._translations)

    def missing_runs(self) -> List[MissingRun]:
        return missing_runs(self._items, self._translations)

    def stats(self) -> SessionStats:
        report = self.report()
        return SessionStats(
            game_count=report.total,
            dictionary_count=len(self._translations),
            missing_count=report.missing_count,
            coverage=report.coverage,
            last_update=self.last_update,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Summary for JSON output."""
        stats = self.stats()
        return {
            "game_count": stats.game_count,
            "dictionary_count": stats.dictionary_count,
            "missing_count": stats.missing_count,
            "coverage": stats.coverage,
            "last_update": stats.last_update.isoformat() if stats.last_update else None,
            "status": {kind: {"state": s.state, "message": s.message} for kind, s in self.status.items()},
        }

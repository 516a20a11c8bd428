"""
Extraction pipeline: manifest -> chunks -> strategies -> item list.

Usage:
    from itemcheck.extractors.pipeline import ExtractionPipeline, ChunkPlan

    pipeline = ExtractionPipeline(tables, proxies)
    result = pipeline.run(MANIFEST_URL, [ChunkPlan("3"), ChunkPlan("32")])
    print(len(result.items))
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import requests

from .base import BaseExtractor, ExtractionResult, create_extractor, run_extractor
from ..net.manifest import fetch_manifest, resolve_chunks
from ..net.proxy import Proxy, fetch_through_proxies
from ..utils.config import DEFAULT_STRATEGIES, DEFAULT_THRESHOLDS, MERGE_POLICIES, ExtractionTables
from ..utils.exceptions import ConfigError, NotFound, ProxyExhausted
from ..utils.logger import get_logger

logger = get_logger(__name__)

INTERNAL_MARKER = "|"


@dataclass(frozen=True)
class ChunkPlan:
    """Which chunk to scan and with which strategies, in order."""
    chunk_id: str
    strategies: Tuple[str, ...] = tuple(DEFAULT_STRATEGIES)


@dataclass
class ChunkOutcome:
    """What happened to one planned chunk."""
    chunk_id: str
    url: Optional[str] = None
    status: str = "pending"  # missing, duplicate, fetch_failed, parsed, no_result
    strategy: Optional[str] = None
    count: int = 0
    results: List[ExtractionResult] = field(default_factory=list)
    error: Optional[Exception] = None


@dataclass(frozen=True)
class PipelineResult:
    items: Tuple[str, ...]
    chunks: Tuple[ChunkOutcome, ...]


def finalize_items(names: Iterable[str]) -> List[str]:
    """Drop duplicates (first occurrence wins) and internal ``|`` variants."""
    seen = set()
    items = []
    for name in names:
        if name in seen or INTERNAL_MARKER in name:
            continue
        seen.add(name)
        items.append(name)
    return items


def _as_plan(entry: Union[ChunkPlan, str, Tuple[str, Sequence[str]]]) -> ChunkPlan:
    if isinstance(entry, ChunkPlan):
        return entry
    if isinstance(entry, str):
        return ChunkPlan(entry)
    chunk_id, strategies = entry
    return ChunkPlan(str(chunk_id), tuple(strategies))


class ExtractionPipeline:
    """
    Mines the ordered item list out of the game's bundle.

    Per chunk, strategies run in plan order. With merge policy "first"
    the first plausible result wins; with "longest" every strategy runs
    and the longest plausible result wins. Results from all chunks are
    concatenated, then deduplicated.
    """

    def __init__(
        self,
        tables: ExtractionTables,
        proxies: Sequence[Proxy],
        *,
        thresholds: Optional[Mapping[str, int]] = None,
        merge_policy: str = "first",
        session: Optional[requests.Session] = None,
        timeout: float = 30.0
    ):
        if merge_policy not in MERGE_POLICIES:
            raise ConfigError(f"Unknown merge policy: {merge_policy}",
                              config_key="extraction.merge_policy")
        self.tables = tables
        self.proxies = list(proxies)
        self.thresholds: Dict[str, int] = dict(DEFAULT_THRESHOLDS)
        self.thresholds.update(thresholds or {})
        self.merge_policy = merge_policy
        self.session = session
        self.timeout = timeout
        self._extractors: Dict[str, BaseExtractor] = {}

    def extractor(self, name: str) -> BaseExtractor:
        if name not in self._extractors:
            self._extractors[name] = create_extractor(name, self.tables)
        return self._extractors[name]

    def is_plausible(self, result: ExtractionResult) -> bool:
        return len(result.names) > self.thresholds.get(result.strategy, 0)

    def run_strategies(
        self,
        text: str,
        strategies: Sequence[str]
    ) -> Tuple[Optional[ExtractionResult], List[ExtractionResult]]:
        """
        Run strategies over one chunk's text.

        Returns:
            (accepted result or None, every result in run order)
        """
        extractors = [self.extractor(name) for name in strategies]
        results: List[ExtractionResult] = []
        best: Optional[ExtractionResult] = None

        for extractor in extractors:
            result = run_extractor(extractor, text)
            results.append(result)

            if not self.is_plausible(result):
                if result.found:
                    logger.info(f"  {extractor.name}: {len(result)} names, below threshold")
                else:
                    logger.info(f"  {extractor.name}: {result.failure}")
                continue

            logger.info(f"  {extractor.name}: {len(result)} names")
            if best is None or len(result) > len(best):
                best = result
            if self.merge_policy == "first":
                break

        return best, results

    def fetch_chunk(self, url: str) -> str:
        return fetch_through_proxies(
            url, self.proxies, expect="text", session=self.session,
            timeout=self.timeout, stage="chunk"
        )

    def run(
        self,
        manifest_url: str,
        chunk_plan: Sequence[Union[ChunkPlan, str]],
        *,
        base_url: Optional[str] = None
    ) -> PipelineResult:
        """
        Resolve, fetch and scan every planned chunk.

        Raises:
            ProxyExhausted: If the manifest could not be fetched
            ManifestError: If the manifest has no ``files`` mapping
            NotFound: If no chunk yielded a plausible list
        """
        plans = [_as_plan(entry) for entry in chunk_plan]
        for plan in plans:
            for name in plan.strategies:
                self.extractor(name)

        manifest = fetch_manifest(manifest_url, self.proxies, session=self.session, timeout=self.timeout)
        references, misses = resolve_chunks(
            manifest, [p.chunk_id for p in plans], base_url or manifest_url, manifest_url
        )
        by_id = {ref.chunk_id: ref for ref in references}
        missing_ids = {miss.chunk_id: miss for miss in misses}

        outcomes: List[ChunkOutcome] = []
        collected: List[str] = []
        scanned_urls = set()

        for plan in plans:
            outcome = ChunkOutcome(chunk_id=plan.chunk_id)
            outcomes.append(outcome)

            if plan.chunk_id in missing_ids:
                outcome.status = "missing"
                outcome.error = missing_ids[plan.chunk_id]
                continue

            reference = by_id[plan.chunk_id]
            outcome.url = reference.url
            if reference.url in scanned_urls:
                outcome.status = "duplicate"
                continue
            scanned_urls.add(reference.url)

            logger.info(f"Scanning chunk {plan.chunk_id}: {reference.url}...")
            try:
                text = self.fetch_chunk(reference.url)
            except ProxyExhausted as e:
                logger.warning(f"Failed fetching chunk {plan.chunk_id}: {e}")
                outcome.status = "fetch_failed"
                outcome.error = e
                continue

            accepted, results = self.run_strategies(text, plan.strategies)
            outcome.results = results
            if accepted is None:
                outcome.status = "no_result"
                continue

            outcome.status = "parsed"
            outcome.strategy = accepted.strategy
            outcome.count = len(accepted)
            collected.extend(accepted.names)
            logger.info(f"Found {len(accepted)} items in chunk {plan.chunk_id} ({accepted.strategy})")

        items = finalize_items(collected)
        if not items:
            fetched = [o for o in outcomes if o.status in ("parsed", "no_result")]
            failed = [o for o in outcomes if o.status == "fetch_failed"]
            kind = "network" if failed and not fetched else "structure"
            ids = ", ".join(p.chunk_id for p in plans) or "none"
            logger.error(f"Item list not found in target chunks ({ids})")
            raise NotFound(
                f"Item list not found in target chunks ({ids})",
                kind=kind,
                chunks=outcomes,
                cause=failed[-1].error if failed else None,
            )

        logger.info(f"Total unique items found: {len(items)} (of {len(collected)} collected)")
        return PipelineResult(items=tuple(items), chunks=tuple(outcomes))


def extract_canonical_item_list(
    manifest_url: str,
    chunk_plan: Sequence[Union[ChunkPlan, str]],
    tables: ExtractionTables,
    proxies: Sequence[Proxy],
    *,
    base_url: Optional[str] = None,
    thresholds: Optional[Mapping[str, int]] = None,
    merge_policy: str = "first",
    session: Optional[requests.Session] = None,
    timeout: float = 30.0
) -> List[str]:
    """Run the pipeline and return only the ordered item list."""
    pipeline = ExtractionPipeline(
        tables, proxies, thresholds=thresholds, merge_policy=merge_policy,
        session=session, timeout=timeout
    )
    return list(pipeline.run(manifest_url, chunk_plan, base_url=base_url).items)

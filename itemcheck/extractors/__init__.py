"""
Item list extractors for bundled game code.

Strategies (registry name -> class):
    anchor        AnchorScanExtractor       enum found by its first member
    sequential    SequentialEnumExtractor   longest id run anywhere
    string_array  StringArrayExtractor      flat array of quoted names
    definitions   DefinitionBlockExtractor  per-block definition objects

Usage:
    from itemcheck.extractors import ExtractionPipeline, ChunkPlan
    from itemcheck.utils.config import load_tables

    pipeline = ExtractionPipeline(load_tables(), proxies)
    items = pipeline.run(manifest_url, [ChunkPlan("3"), ChunkPlan("32")]).items
"""

from .base import (
    BaseExtractor,
    ExtractionResult,
    EXTRACTORS,
    create_extractor,
    run_extractor,
)
from .filters import NameFilter
from .sequential import (
    AnchorScanExtractor,
    SequentialEnumExtractor,
    SequentialLimits,
    extract_sequential_items,
    scan_from_anchor,
    scan_sequential_enums,
)
from .string_array import StringArrayExtractor, scan_large_string_array
from .definitions import DefinitionBlockExtractor, scan_definition_blocks
from .pipeline import (
    ChunkOutcome,
    ChunkPlan,
    ExtractionPipeline,
    PipelineResult,
    extract_canonical_item_list,
    finalize_items,
)

__all__ = [
    'BaseExtractor',
    'ExtractionResult',
    'EXTRACTORS',
    'create_extractor',
    'run_extractor',
    'NameFilter',
    'AnchorScanExtractor',
    'SequentialEnumExtractor',
    'SequentialLimits',
    'extract_sequential_items',
    'scan_from_anchor',
    'scan_sequential_enums',
    'StringArrayExtractor',
    'scan_large_string_array',
    'DefinitionBlockExtractor',
    'scan_definition_blocks',
    'ChunkOutcome',
    'ChunkPlan',
    'ExtractionPipeline',
    'PipelineResult',
    'extract_canonical_item_list',
    'finalize_items',
]

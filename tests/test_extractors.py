"""
Tests for bundle text extractors.

Run with: pytest tests/test_extractors.py -v
"""
import pytest
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from itemcheck.extractors import (
    EXTRACTORS,
    ExtractionResult,
    NameFilter,
    SequentialLimits,
    create_extractor,
    extract_sequential_items,
    run_extractor,
    scan_definition_blocks,
    scan_from_anchor,
    scan_large_string_array,
    scan_sequential_enums,
)
from itemcheck.extractors.base import BaseExtractor
from itemcheck.extractors.definitions import find_templates
from itemcheck.extractors.string_array import find_array_end
from itemcheck.utils.config import ExtractionTables
from itemcheck.utils.exceptions import ConfigError, ParseNoResult

from conftest import enum_chunk

KEYWORDS = ("Dirt", "Stone", "Wood", "Grass Block", "Air")


def quoted(names):
    return "[" + ",".join(f'"{n}"' for n in names) + "]"


class TestSequentialItems:
    """Tests for the sequential id scan."""

    def test_collects_contiguous_run(self):
        """Scan from the first entry collects every id in order."""
        text = enum_chunk(150)
        items = extract_sequential_items(text, text.index("Unloaded"))
        assert items[0] == "Unloaded"
        assert items[1] == "Item1"
        assert items[-1] == "Item150"
        assert len(items) == 151

    def test_too_short_run_is_rejected(self):
        """Fewer than 100 entries is noise."""
        text = enum_chunk(50)
        assert extract_sequential_items(text, text.index("Unloaded")) is None

    def test_aliases_collapse(self):
        """A repeated id keeps its first name."""
        entries = ["Unloaded:0", "Dirt:1", "Soil:1"] + [f"Item{i}:{i}" for i in range(2, 120)]
        text = "{" + ",".join(entries) + "}"
        items = extract_sequential_items(text, 1)
        assert "Dirt" in items
        assert "Soil" not in items
        assert items[1:3] == ["Dirt", "Item2"]

    def test_no_duplicate_names(self):
        """A name seen under an earlier id is not collected again."""
        entries = ["Unloaded:0", "Dirt:1", "Stone:2", "Dirt:3"] + [f"Item{i}:{i}" for i in range(4, 130)]
        text = "{" + ",".join(entries) + "}"
        items = extract_sequential_items(text, 1)
        assert len(items) == len(set(items))
        assert items[:4] == ["Unloaded", "Dirt", "Stone", "Item4"]

    def test_skips_out_of_order_entry(self):
        """A stray entry costs a few failures but does not end the scan."""
        entries = ["Unloaded:0"] + [f"Item{i}:{i}" for i in range(1, 60)] + ["X:9"]
        entries += [f"Item{i}:{i}" for i in range(60, 120)]
        text = "{" + ",".join(entries) + "}"
        items = extract_sequential_items(text, 1)
        assert "X" not in items
        assert items[-1] == "Item119"

    def test_consecutive_failures_stop_scan(self):
        """Ten failures in a row end the run."""
        head = "{" + ",".join(["Unloaded:0"] + [f"Item{i}:{i}" for i in range(1, 110)])
        tail = "," + "#" * 40 + "," + ",".join(f"Late{i}:{i}" for i in range(110, 130))
        items = extract_sequential_items(head + tail, 1)
        assert items[-1] == "Item109"

    def test_quoted_and_assignment_entries(self):
        """Quoted names and '=' assignments are entries too."""
        entries = ['"Unloaded":0'] + [f'"Item {i}"={i}' for i in range(1, 110)]
        text = "{" + ";".join(entries) + "}"
        items = extract_sequential_items(text, 0)
        assert items[1] == "Item 1"
        assert len(items) == 110

    def test_custom_limits(self):
        """Minimum size comes from the limits."""
        text = enum_chunk(20)
        limits = SequentialLimits(min_items=10)
        assert len(extract_sequential_items(text, text.index("Unloaded"), limits)) == 21

    def test_hard_cap_stops_scan(self):
        """The scan stops once the run grows past max_items."""
        text = enum_chunk(100)
        limits = SequentialLimits(max_items=20, min_items=5)
        items = extract_sequential_items(text, text.index("Unloaded"), limits)
        assert len(items) == 21
        assert items[-1] == "Item20"

    def test_soft_cap_stops_on_scattered_failures(self):
        """Past soft_cap_items, accumulated failures end the scan even when none run long."""
        # ",##" before every id from 10 on costs three failures in a row
        entries = ["Unloaded:0"] + [f"Item{i}:{i}" for i in range(1, 10)]
        for i in range(10, 60):
            entries += ["##", f"Item{i}:{i}"]
        text = "{" + ",".join(entries) + "}"

        limits = SequentialLimits(soft_cap_items=20, max_total_failures=5, min_items=5)
        capped = extract_sequential_items(text, 1, limits)
        assert len(capped) == 21
        assert capped[-1] == "Item20"

        uncapped = extract_sequential_items(text, 1, SequentialLimits(min_items=5))
        assert len(uncapped) == 60
        assert uncapped[-1] == "Item59"


class TestAnchorScan:
    """Tests for the anchor-based scan."""

    def test_finds_enum_from_sentinel(self):
        """Scan starts at 'Unloaded: 0'."""
        items = scan_from_anchor(enum_chunk(150), ["Unloaded"])
        assert len(items) == 151

    def test_assignment_syntax(self):
        """'Unloaded = 0' is also an anchor."""
        entries = ["Unloaded = 0"] + [f"Item{i} = {i}" for i in range(1, 120)]
        items = scan_from_anchor("x;" + ";".join(entries), ["Unloaded"])
        assert items[:2] == ["Unloaded", "Item1"]

    def test_no_sentinel(self):
        """Without a sentinel there is nothing to anchor on."""
        assert scan_from_anchor(enum_chunk(150, first="Air"), ["Unloaded"]) is None


class TestHeuristicScan:
    """Tests for the longest-run scan."""

    def test_keeps_longest_run(self):
        """Short decoy enums lose to the real one."""
        decoy = "var d={a:0,b:1,c:2};" + " " * 30
        items = scan_sequential_enums(decoy + enum_chunk(130, first="Air"))
        assert items[0] == "Air"
        assert len(items) == 131

    def test_nothing_plausible(self):
        """Only tiny enums means no result."""
        assert scan_sequential_enums("var d={a:0,b:1,c:2};") is None


class TestStringArray:
    """Tests for the large string array scan."""

    def test_returns_array_verbatim(self):
        """A long array of names is returned as-is."""
        names = ["Dirt", "Stone", "Wood", "Grass Block", "Air"] + [f"X{i}" for i in range(1, 61)]
        text = f"var q=1;const n={quoted(names)};q++;"
        assert scan_large_string_array(text, KEYWORDS) == names

    def test_short_array_rejected(self):
        """Ten strings is not an item list."""
        names = ["Dirt", "Stone", "Wood", "Grass Block", "Air"] + [f"X{i}" for i in range(1, 6)]
        assert scan_large_string_array(f"n={quoted(names)};", KEYWORDS) is None

    def test_requires_keyword(self):
        """Arrays without a known item nearby are skipped."""
        names = [f"Name{i}" for i in range(80)]
        assert scan_large_string_array(f"n={quoted(names)};", KEYWORDS) is None

    def test_single_quotes(self):
        """Single-quoted literals are normalized."""
        names = ["Dirt", "Stone"] + [f"X{i}" for i in range(60)]
        text = "n=[" + ",".join(f"'{n}'" for n in names) + "];"
        assert scan_large_string_array(text, KEYWORDS) == names

    def test_mostly_strings_filtered(self):
        """Non-string elements are dropped from an accepted array."""
        names = ["Dirt", "Stone"] + [f"X{i}" for i in range(60)]
        body = ",".join(f'"{n}"' for n in names) + ",1,2,null"
        assert scan_large_string_array(f"n=[{body}];", KEYWORDS) == names

    def test_longest_wins(self):
        """The longer of two valid arrays is kept."""
        short = ["Dirt", "Stone"] + [f"S{i}" for i in range(55)]
        long = ["Dirt", "Stone"] + [f"L{i}" for i in range(90)]
        text = f"a={quoted(short)};b={quoted(long)};"
        assert scan_large_string_array(text, KEYWORDS) == long

    def test_find_array_end_ignores_brackets_in_strings(self):
        """Brackets and escaped quotes inside strings do not close the array."""
        text = r'x=["a]", "b\"]", ["c"]] tail'
        start = text.index("[")
        assert text[start:find_array_end(text, start)] == r'["a]", "b\"]", ["c"]]'

    def test_find_array_end_unterminated(self):
        """An array that never closes has no end."""
        assert find_array_end('["a", "b"', 0) is None


class TestNameFilter:
    """Tests for candidate name validity."""

    def test_rejections(self, tables):
        """Every rule has a reason."""
        name_filter = NameFilter(tables)
        assert name_filter.rejection("A") == "too short"
        assert name_filter.rejection("Secret|Debug") is not None
        assert name_filter.rejection("snake_case") is not None
        assert name_filter.rejection("Placeholder Block") == "reserved prefix"
        assert name_filter.rejection("displayName") == "schema property"
        assert name_filter.rejection("Maple Log") is None

    def test_duplicate(self, tables):
        """A name is accepted once per scan."""
        name_filter = NameFilter(tables)
        assert name_filter.add("Maple Log")
        assert not name_filter.add("Maple Log")
        assert name_filter.rejection("Maple Log") == "duplicate"


class TestDefinitionBlocks:
    """Tests for the definition block scan."""

    BUNDLE = (
        'Xe("Maple Log",{displayName:{translationKey:"a"},ttb:30,textureInfo:"maple"}),'
        '"Oak Planks":{ttb:20,textureInfo:["oak","oak2"]},'
        'Bucket:{textureInfo:"bucket"},'
        'placeholder1:{textureInfo:"x"};'
        'const wool=COLORS.map(t=>t+" Wool");'
        'const caps=C.map(e=>"Spawn "+e+" Capsule");'
    )

    def test_names_in_text_order(self, tables):
        """Blocks, implied variants and generated families come out in order."""
        assert scan_definition_blocks(self.BUNDLE, tables) == [
            "Maple Log",
            "Oak Planks",
            "Bucket",
            "Water Bucket",
            "White Wool",
            "Black Wool",
            "Spawn Cow Capsule",
            "Spawn Pig Capsule",
        ]

    def test_template_literal_closure(self, tables):
        """`Spawn ${e} Capsule` expands over the creature palette."""
        names = scan_definition_blocks("f=e=>`Spawn ${e} Capsule`;", tables)
        assert names == ["Spawn Cow Capsule", "Spawn Pig Capsule"]

    def test_suffix_inside_closure_not_doubled(self):
        """A closure's own suffix concatenation is not a second template."""
        templates = find_templates('m(e=>"Spawn "+e+" Capsule")')
        assert len(templates) == 1
        assert templates[0].prefix == "Spawn "

    def test_unlisted_suffix_generates_nothing(self, tables):
        """String building with a suffix the tables do not list is not a family."""
        text = 'Xe("Maple Log",{ttb:1,textureInfo:"m"});ui.label=n+" Kills";'
        assert scan_definition_blocks(text, tables) == ["Maple Log"]

    def test_listed_suffix_ignores_default_palette(self, tables):
        """A listed suffix expands over its own palette, not the default."""
        creatures = ExtractionTables(
            palettes=tables.palettes,
            default_palette="colors",
            suffix_palettes={"creatures": ("Plush",)},
        )
        assert scan_definition_blocks('P.map(t=>t+" Plush");', creatures) == ["Cow Plush", "Pig Plush"]
        assert scan_definition_blocks('P.map(t=>t+" Wool");', creatures) is None

    def test_nothing_found(self, tables):
        """Text without markers yields no result."""
        assert scan_definition_blocks("var a=1;", tables) is None


class TestRegistry:
    """Tests for the extractor registry and result type."""

    def test_all_strategies_registered(self):
        """Every strategy is available by name."""
        assert set(EXTRACTORS) >= {"anchor", "sequential", "string_array", "definitions"}

    def test_unknown_strategy(self, tables):
        """Unknown names are a configuration error."""
        with pytest.raises(ConfigError):
            create_extractor("magic", tables)

    def test_no_result_is_tagged(self, tables):
        """Finding nothing is a ParseNoResult, not an empty list."""
        result = create_extractor("anchor", tables).extract("var a=1;")
        assert not result.found
        assert isinstance(result.failure, ParseNoResult)

    def test_extractor_exception_is_contained(self, tables):
        """A crashing extractor returns a failed result."""
        class Broken(BaseExtractor):
            name = "broken"

            def scan(self, text):
                raise RuntimeError("boom")

        result = run_extractor(Broken(tables), "text")
        assert isinstance(result, ExtractionResult)
        assert isinstance(result.failure, RuntimeError)
        assert len(result) == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

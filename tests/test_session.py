"""
Tests for the checker session.

Run with: pytest tests/test_session.py -v
"""
import json
import pytest
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from itemcheck.session import CheckerSession, describe_failure
from itemcheck.utils.config import Config
from itemcheck.utils.exceptions import (
    DictionaryError,
    ManifestError,
    NotFound,
    ProxyExhausted,
)

from conftest import CHUNK_3_KEY, DICTIONARY_URL, GAME, MANIFEST_URL, FakeHTTP, enum_chunk

CHUNK_3_URL = f"{GAME}/{CHUNK_3_KEY}"


@pytest.fixture
def config():
    config = Config()
    config.network.game_proxies = ["{raw}"]
    config.network.dictionary_proxies = ["{raw}"]
    config.extraction.manifest_url = MANIFEST_URL
    config.extraction.base_url = GAME
    config.extraction.chunk_ids = ["3"]
    config.dictionary.url = DICTIONARY_URL
    return config


@pytest.fixture
def routes(manifest_json):
    return {
        MANIFEST_URL: manifest_json,
        CHUNK_3_URL: enum_chunk(150),
        DICTIONARY_URL: json.dumps({"Unloaded": "未読込", "Item1": "アイテム1", "Retired": "旧"}),
    }


@pytest.fixture
def session(config, tables, routes):
    return CheckerSession(config, tables, http=FakeHTTP(routes))


class TestRefresh:
    """Tests for loading both sources."""

    def test_refresh_loads_both(self, session):
        """Items and dictionary are committed."""
        assert session.refresh() == {"items": True, "dictionary": True}
        assert len(session.items) == 151
        assert session.translations["Item1"] == "アイテム1"
        assert session.status["items"].state == "success"
        assert session.status["dictionary"].state == "success"

    def test_concurrent_refresh(self, session):
        """Concurrent loading gives the same result."""
        assert session.refresh(concurrent=True) == {"items": True, "dictionary": True}
        assert len(session.items) == 151
        assert len(session.translations) == 3

    def test_state_is_read_only(self, session):
        """Committed values are replaced, never mutated."""
        session.refresh()
        with pytest.raises(TypeError):
            session.translations["Item2"] = "x"
        assert isinstance(session.items, tuple)

    def test_failure_keeps_previous_items(self, session):
        """A failed refresh leaves the last good list in place."""
        session.refresh_items()
        before = session.items

        session._http.routes[MANIFEST_URL] = (500, "")
        assert session.refresh_items() is False
        assert session.items == before
        assert session.status["items"].state == "error"
        assert session.status["items"].message.startswith("manifest/network problem")

    def test_structure_failure_message(self, session):
        """Unparseable chunks are reported as a structure problem."""
        session._http.routes[CHUNK_3_URL] = "var a=1;"
        assert session.refresh_items() is False
        assert session.status["items"].message.startswith("parse/structure problem")

    def test_bad_dictionary_keeps_previous(self, session):
        """A non-object dictionary is an error and changes nothing."""
        session.refresh_dictionary()
        session._http.routes[DICTIONARY_URL] = "[1, 2]"
        assert session.refresh_dictionary() is False
        assert len(session.translations) == 3
        assert session.status["dictionary"].message.startswith("parse/structure problem")

    def test_dictionary_from_file(self, config, tables, tmp_path):
        """A configured file replaces the remote dictionary."""
        path = tmp_path / "ItemName.json"
        path.write_text(json.dumps({"Dirt": "土"}, ensure_ascii=False), encoding="utf-8")
        config.dictionary.file = str(path)

        http = FakeHTTP()
        session = CheckerSession(config, tables, http=http)
        assert session.refresh_dictionary()
        assert dict(session.translations) == {"Dirt": "土"}
        assert http.calls == []


class TestGenerations:
    """Tests for stale run handling."""

    def test_stale_run_discarded(self, session):
        """A run started earlier cannot overwrite a later commit."""
        old = session._begin("items")
        new = session._begin("items")

        assert session._commit("items", new, lambda: setattr(session, "_items", ("New",)), "new")
        assert not session._commit("items", old, lambda: setattr(session, "_items", ("Old",)), "old")
        assert session.items == ("New",)

    def test_stale_failure_keeps_status(self, session):
        """A stale failure does not overwrite a newer success status."""
        old = session._begin("items")
        new = session._begin("items")
        session._commit("items", new, lambda: None, "done")
        session._fail("items", old, NotFound("gone"))
        assert session.status["items"].state == "success"


class TestReport:
    """Tests for reports and stats."""

    def test_stats(self, session):
        """Stats reflect the committed data."""
        session.refresh()
        stats = session.stats()
        assert stats.game_count == 151
        assert stats.dictionary_count == 3
        assert stats.missing_count == 149
        assert stats.coverage == 1.3
        assert stats.last_update is not None

    def test_report_recomputed(self, session):
        """Reports follow the current data, never a cached copy."""
        session.refresh_items()
        assert session.report().translated_count == 0
        session.refresh_dictionary()
        report = session.report()
        assert report.translated_count == 2
        assert report.orphans == ("Retired",)

    def test_missing_runs(self, session):
        """Missing runs start after the translated items."""
        session.refresh()
        runs = session.missing_runs()
        assert len(runs) == 1
        assert runs[0].insert_after == "Item1"
        assert runs[0].start_index == 3

    def test_to_dict(self, session):
        """Summary is JSON serializable."""
        session.refresh()
        summary = json.loads(json.dumps(session.to_dict()))
        assert summary["game_count"] == 151
        assert summary["status"]["items"]["state"] == "success"


class TestDescribeFailure:
    """Tests for operator diagnostics."""

    def test_network_problems(self):
        """Relay and manifest failures point at the network."""
        assert describe_failure(ProxyExhausted("u", stage="manifest")).startswith("manifest/network problem")
        assert describe_failure(ManifestError("no files")).startswith("manifest/network problem")
        assert describe_failure(NotFound("x", kind="network")).startswith("manifest/network problem")

    def test_structure_problems(self):
        """Parse failures point at upstream content changes."""
        assert describe_failure(NotFound("x")).startswith("parse/structure problem")
        assert describe_failure(DictionaryError("bad")).startswith("parse/structure problem")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

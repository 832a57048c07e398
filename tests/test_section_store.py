"""
Unit tests for the section store: variables, expiration sweep and compaction.
"""

import json

import pytest

from conftest import START_TIME, FakeClock
from sessionly.modules.session import SectionStore, SessionBlob


@pytest.fixture
def store():
    return SectionStore(clock=FakeClock())


def root(store: SectionStore) -> dict:
    return json.loads(store.dump())


class TestVariables:
    """Test reading and writing section variables."""

    def test_set_and_get(self, store):
        store.set("user", "name", "ada")

        assert store.get("user", "name") == "ada"
        assert store.has("user", "name") is True
        assert store.get("user", "missing", "default") == "default"
        assert store.get("missing", "name") is None

    def test_remove_variable(self, store):
        store.set("user", "name", "ada")
        store.set("user", "role", "admin")
        store.set_expiration("user", START_TIME + 60, ["role"])

        store.remove("user", "role")

        assert store.variables("user") == {"name": "ada"}
        assert store.expiration("user", "role") is None

    def test_remove_section(self, store):
        store.set("user", "name", "ada")
        store.set_expiration("user", START_TIME + 60)

        store.remove("user")

        assert store.has_section("user") is False
        assert store.expiration("user") is None

    def test_set_with_ttl(self, store):
        store.set("flash", "message", "saved", ttl=30)

        assert store.expiration("flash", "message") == START_TIME + 30

    def test_set_rejects_unserializable_value(self, store):
        with pytest.raises(TypeError):
            store.set("user", "callback", object())
        assert store.has_section("user") is False

    def test_has_section_requires_content(self, store):
        store.set("user", "name", "ada")
        store.remove("user", "name")

        assert store.has_section("user") is False
        assert store.has_section("never") is False

    def test_variables_is_a_copy(self, store):
        store.set("user", "name", "ada")
        store.variables("user")["name"] = "eve"

        assert store.get("user", "name") == "ada"


class TestSectionNames:
    """Test the section name view."""

    def test_view_is_restartable_and_live(self, store):
        store.set("user", "name", "ada")
        names = store.section_names()

        assert list(names) == ["user"]
        assert list(names) == ["user"]

        store.set("cart", "items", [])
        assert list(names) == ["user", "cart"]
        assert len(names) == 2
        assert "cart" in names

    def test_view_follows_reload(self, store):
        store.set("user", "id", 1)
        names = store.section_names()

        store.load(b'{"Time":1,"DATA":{"cart":{"items":[]}}}')

        assert list(names) == ["cart"]

    def test_removal_during_iteration(self, store):
        store.set("a", "x", 1)
        store.set("b", "x", 1)

        for name in store.section_names():
            store.remove(name)

        assert list(store.section_names()) == []


class TestSweep:
    """Test the expiration sweep."""

    def test_variable_expires_strictly_after_timestamp(self, store):
        store.set("s", "v", "x")
        store.set_expiration("s", START_TIME + 100, ["v"])

        assert store.sweep(now=START_TIME + 100) == 0
        assert store.get("s", "v") == "x"
        assert store.expiration("s", "v") == START_TIME + 100

        assert store.sweep(now=START_TIME + 101) == 1
        assert store.has("s", "v") is False
        assert store.expiration("s", "v") is None

    def test_section_expiry_takes_precedence(self, store):
        store.set("s", "v", "x")
        store.set("s", "w", "y")
        store.set_expiration("s", START_TIME + 10)
        store.set_expiration("s", START_TIME + 1000, ["v"])

        store.sweep(now=START_TIME + 11)

        assert store.has_section("s") is False
        assert "s" not in root(store).get("DATA", {})
        assert "s" not in root(store).get("META", {})

    def test_section_expiry_ignores_variable_order(self, store):
        store.set("s", "v", "x")
        store.set_expiration("s", START_TIME + 5, ["v"])
        store.set_expiration("s", START_TIME + 5)

        assert store.sweep(now=START_TIME + 6) == 2
        assert "s" not in root(store).get("META", {})

    def test_other_sections_untouched(self, store):
        store.set("old", "v", 1)
        store.set("new", "v", 2)
        store.set_expiration("old", START_TIME + 1)
        store.set_expiration("new", START_TIME + 1000)

        store.sweep(now=START_TIME + 2)

        assert list(store.section_names()) == ["new"]

    def test_uses_clock_by_default(self):
        clock = FakeClock()
        store = SectionStore(clock=clock)
        store.set("s", "v", "x", ttl=10)

        clock.advance(10)
        store.sweep()
        assert store.has("s", "v") is True

        clock.advance(1)
        store.sweep()
        assert store.has("s", "v") is False

    def test_malformed_metadata_is_skipped(self):
        blob = SessionBlob({
            "Time": START_TIME,
            "DATA": {"s": {"v": 1}, "t": "not-a-section"},
            "META": {
                "s": {"v": "soon", "w": None, "x": True},
                "t": {"": START_TIME - 10},
                "u": ["garbage"],
            },
        })
        store = SectionStore(blob, clock=FakeClock())

        assert store.sweep() == 1
        assert store.get("s", "v") == 1
        assert "t" not in root(store)["DATA"]

    def test_meta_without_data(self, store):
        store.set_expiration("ghost", START_TIME - 1, ["v"])

        assert store.sweep() == 1

    def test_nothing_to_sweep(self, store):
        assert store.sweep() == 0


class TestCompaction:
    """Test removal of empty scaffolding."""

    def test_removes_empty_maps(self, store):
        store.set("user", "name", "ada")
        store.set_expiration("user", START_TIME + 10, ["name"])
        store.remove("user", "name")

        store.compact()

        assert root(store) == {}

    def test_keeps_live_data(self, store):
        store.set("user", "name", "ada")
        store.set("cart", "items", [1])
        store.remove("cart", "items")
        store.set_expiration("user", START_TIME + 10)

        store.compact()

        assert root(store) == {
            "DATA": {"user": {"name": "ada"}},
            "META": {"user": {"": START_TIME + 10}},
        }

    def test_idempotent(self, store):
        store.set("user", "name", "ada")
        store.set("cart", "items", 1)
        store.remove("cart", "items")
        store.set_expiration("flash", START_TIME + 10, ["message"])
        store.remove_expiration("flash", ["message"])

        store.compact()
        once = store.dump()
        store.compact()

        assert store.dump() == once

    def test_keeps_time_marker(self, store):
        store.time_marker = START_TIME

        store.compact()

        assert root(store) == {"Time": START_TIME}


class TestPersistence:
    """Test loading and snapshots."""

    def test_load_dump(self, store):
        store.load(b'{"Time": 5, "DATA": {"user": {"name": "ada"}}}')

        assert store.time_marker == 5
        assert store.get("user", "name") == "ada"

    def test_corrupt_blob_starts_empty(self, store):
        store.load(b"\x00not json")

        assert store.time_marker is None
        assert list(store.section_names()) == []

    def test_non_object_blob_starts_empty(self, store):
        store.load(b"[1, 2, 3]")

        assert store.dump() == b"{}"

    def test_snapshot_is_independent(self, store):
        store.set("cart", "items", [1])
        snapshot = store.snapshot()

        store.get("cart", "items").append(2)
        store.restore(snapshot)

        assert store.get("cart", "items") == [1]

    def test_clear(self, store):
        store.set("user", "name", "ada")
        store.time_marker = START_TIME

        store.clear()

        assert store.dump() == b"{}"

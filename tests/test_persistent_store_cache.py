from datetime import timedelta

import pytest

from flagstore.persistent_store_cache import CachePair
from flagstore.store_types import Flag, Tombstone


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def make_flag(key, version=1):
    return Flag(key, version, {"on": True})


def filled(ttl, clock=None, keys=("a",)):
    """A cache holding each key singly and all of them together."""
    cache = CachePair("flags", ttl) if clock is None else CachePair("flags", ttl, clock=clock)
    for key in keys:
        cache.insert_single(make_flag(key), key)
    cache.insert_all({key: make_flag(key) for key in keys})
    return cache


def test_single_items_round_trip():
    cache = CachePair("flags", 100)
    cache.insert_single(make_flag("a"), "a")
    assert cache.get_one("a") == make_flag("a")
    assert cache.get_one("b") is None


def test_tombstones_are_cached():
    cache = CachePair("flags", 100)
    cache.insert_single(Tombstone(7), "gone")
    assert cache.get_one("gone") == Tombstone(7)


def test_all_round_trip():
    cache = CachePair("flags", 100)
    assert cache.get_all() is None
    data = {"a": make_flag("a"), "b": Tombstone(3)}
    cache.insert_all(data)
    assert cache.get_all() == data


def test_returned_values_are_copies():
    cache = filled(None)
    cache.get_one("a").version = 99
    assert cache.get_one("a").version == 1

    cache.get_all()["b"] = make_flag("b")
    assert list(cache.get_all()) == ["a"]


def test_zero_ttl_caches_nothing():
    cache = filled(timedelta(0))
    assert (cache.get_one("a"), cache.get_all()) == (None, None)
    assert cache.cache_is_infinite() is False


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = filled(timedelta(seconds=10), clock=clock)

    clock.now = 9.5
    assert cache.get_one("a").key == "a"
    assert set(cache.get_all()) == {"a"}

    clock.now = 10.5
    assert (cache.get_one("a"), cache.get_all()) == (None, None)


def test_infinite_cache_never_expires():
    clock = FakeClock()
    cache = filled(None, clock=clock)
    assert cache.cache_is_infinite() is True
    clock.now = 1e12
    assert cache.get_one("a").key == "a"


@pytest.mark.parametrize(
    "action, gone, kept",
    [
        (lambda c: c.invalidate_all(), {"all"}, {"a", "b"}),
        (lambda c: c.invalidate_single("a"), {"a"}, {"all", "b"}),
        (lambda c: c.invalidate_everything(), {"all", "a", "b"}, set()),
    ],
)
def test_invalidation(action, gone, kept):
    cache = filled(None, keys=("a", "b"))
    action(cache)

    def present(name):
        return (cache.get_all() if name == "all" else cache.get_one(name)) is not None

    assert {name for name in gone | kept if present(name)} == kept


def test_negative_ttl_is_rejected():
    with pytest.raises(ValueError):
        CachePair("flags", -1)
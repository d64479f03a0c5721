from datetime import timedelta

import pytest

from flagstore.persistent_store import PersistentDataStore
from flagstore.persistent_store_builders import (
    DEFAULT_CACHE_TIME,
    PersistentDataStoreBuilder,
    PersistentDataStoreFactory,
)
from flagstore.persistent_store_wrapper import PersistentDataStoreWrapper
from flagstore.store_builders import BuildError
from flagstore.store_types import AllData, DataKind, parse_flag


class DictStore(PersistentDataStore):
    """Serialized items kept in one dictionary per data kind."""

    def __init__(self):
        self.items = {DataKind.FLAG: {}, DataKind.SEGMENT: {}}
        self.initialized = False

    def init(self, all_data):
        self.items = {DataKind.FLAG: dict(all_data.flags), DataKind.SEGMENT: dict(all_data.segments)}
        self.initialized = True

    def flag(self, key):
        return self.items[DataKind.FLAG].get(key)

    def segment(self, key):
        return self.items[DataKind.SEGMENT].get(key)

    def all_flags(self):
        return dict(self.items[DataKind.FLAG])

    def upsert(self, kind, key, serialized_item):
        previous = self.items[kind].get(key)
        self.items[kind][key] = serialized_item
        return previous is not None

    def is_initialized(self):
        return self.initialized


class RecordingFactory(PersistentDataStoreFactory):
    def __init__(self):
        self.created = []

    def create_persistent_data_store(self):
        self.created.append(DictStore())
        return self.created[-1]


class BrokenFactory(PersistentDataStoreFactory):
    def create_persistent_data_store(self):
        raise OSError("connection refused")


@pytest.fixture
def factory():
    return RecordingFactory()


@pytest.fixture
def builder(factory):
    return PersistentDataStoreBuilder(factory)


def test_builder_can_support_different_cache_ttl_options(builder):
    assert builder.cache_ttl == DEFAULT_CACHE_TIME == timedelta(seconds=15)

    steps = [
        (lambda: builder.cache_time(timedelta(seconds=100)), timedelta(seconds=100)),
        (lambda: builder.cache_seconds(1000), timedelta(seconds=1000)),
        (builder.cache_forever, None),
        (builder.no_caching, timedelta(0)),
    ]
    for step, expected in steps:
        step()
        assert builder.cache_ttl == expected


def test_setters_return_builder_for_chaining(builder):
    assert builder.cache_seconds(5).cache_forever() is builder
    assert builder.cache_ttl is None


@pytest.mark.parametrize(
    "configure",
    [lambda b: b.cache_seconds(-1), lambda b: b.cache_time(timedelta(seconds=-1))],
)
def test_negative_ttl_is_rejected(builder, configure):
    with pytest.raises(ValueError):
        configure(builder)
    assert builder.cache_ttl == timedelta(seconds=15)


def test_build_wraps_store_from_factory(factory, builder):
    store = builder.no_caching().build()

    assert isinstance(store, PersistentDataStoreWrapper)
    assert len(factory.created) == 1

    flag = parse_flag(
        {"key": "flag", "version": 42, "on": True, "fallthrough": {"variation": 1},
         "variations": [False, True], "salt": "kosher"}
    )
    store.init(AllData(flags={"flag": flag}, segments={}))

    assert factory.created[0].is_initialized() is True
    assert store.flag("flag").key == "flag"


def test_each_build_creates_a_new_store(factory, builder):
    first, second = builder.build(), builder.build()
    assert first is not second
    assert len(factory.created) == 2


def test_factory_failure_raises_build_error():
    with pytest.raises(BuildError) as info:
        PersistentDataStoreBuilder(BrokenFactory()).build()
    assert "connection refused" in str(info.value)
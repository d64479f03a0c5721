# flagstore

`flagstore` holds feature flags and segments. It provides:

- `flagstore.store.InMemoryDataStore`, a versioned store that keeps its data
  in memory. An update is applied only if its version is newer than the
  stored one. A deletion is recorded as a `Tombstone` carrying the version at
  which the item was removed.
- `flagstore.persistent_store_wrapper.PersistentDataStoreWrapper`, which puts
  a cache in front of any backend implementing
  `flagstore.persistent_store.PersistentDataStore`. The cache can expire
  after a set time or never expire.
- Builders that create configured stores:
  `flagstore.store_builders.InMemoryDataStoreBuilder` and
  `flagstore.persistent_store_builders.PersistentDataStoreBuilder`.

The package uses only the standard library.

## Installation

```
pip install flagstore
```

## Flags, segments and tombstones

`flagstore.store_types` defines the data types:

- `Flag` and `Segment` each have a `key`, a `version` and an `attributes`
  dict that holds the rest of the definition. `to_dict()` returns the whole
  item as a JSON-compatible dict.
- `Tombstone(version)` marks an item that was deleted.
- `AllData(flags=..., segments=...)` is a full data set, indexed by key.
- `DataKind.FLAG` and `DataKind.SEGMENT` name the two collections.

`parse_flag(data)` and `parse_segment(data)` accept a mapping or a JSON
document (str or bytes). They check the required fields and raise
`SerializationError`, a `ValueError`, if the input is invalid. A flag
requires `key`, `version`, `on`, `fallthrough` and `variations`. A segment
requires `key` and `version`.

## Using the in-memory store

```python
from flagstore.store import InMemoryDataStore
from flagstore.store_types import AllData, DataKind, PatchTarget, Tombstone, parse_flag

flag = parse_flag({
    "key": "new-checkout",
    "version": 1,
    "on": True,
    "variations": [False, True],
    "fallthrough": {"variation": 1},
    "offVariation": 0,
    "salt": "salt",
})

store = InMemoryDataStore()
store.init(AllData(flags={"new-checkout": flag}, segments={}))

store.flag("new-checkout")       # a copy of the Flag
store.all_flags()                # {"new-checkout": Flag(...)}, tombstones left out

store.upsert("new-checkout", PatchTarget(DataKind.FLAG, Tombstone(2)))
store.flag("new-checkout")       # None: deleted at version 2
```

A `PatchTarget` contains a `DataKind` and either a matching item or a
`Tombstone`. `PatchTarget.other(value)` wraps a value that is neither a flag
nor a segment. `parse_patch_target(value)` classifies a decoded JSON value
as one of:

- a flag;
- a flag tombstone, when the value is a bare non-negative integer;
- a segment;
- anything else.

## Errors on update

`upsert` raises subclasses of `flagstore.store.UpdateError`:

- `InvalidTargetError` when the target is neither a flag nor a segment;
- `ParseError` when the wrapper cannot serialize an item;
- `PersistentStoreUpdateError` when the persistent backend raises
  `PersistentStoreError` during an upsert.

`InvalidPathError` is also defined for callers that reject a bad patch path.

## Caching a persistent backend

Implement `PersistentDataStore` for your database. It only stores and returns
`SerializedItem` values and should do no caching of its own. Signal failures
by raising `PersistentStoreError`. Then write a `PersistentDataStoreFactory`
that creates the backend:

```python
from flagstore.persistent_store_builders import (
    PersistentDataStoreBuilder,
    PersistentDataStoreFactory,
)

class MyFactory(PersistentDataStoreFactory):
    def create_persistent_data_store(self):
        return MyDatabaseStore()

builder = PersistentDataStoreBuilder(MyFactory())
builder.cache_seconds(30)      # the default is 15 seconds
# builder.cache_forever()      # cached entries never expire
# builder.no_caching()         # every read goes to the backend

store = builder.build()        # a PersistentDataStoreWrapper
```

The builder has these settings:

- `cache_time(timedelta)` sets the cache lifetime. A zero lifetime turns
  caching off.
- `cache_ttl` returns the current setting. `None` means the cache never
  expires.
- A negative lifetime raises `ValueError`.
- If the factory raises `OSError`, `build()` raises
  `flagstore.store_builders.BuildError`.

The wrapper behaves as follows:

- Reads that fail, whether the backend raises or a stored item cannot be
  parsed, are logged as warnings. They return `None`, or `{}` for
  `all_flags()`.
- If an upsert is not accepted by the backend, the wrapper drops the cached
  entry and re-reads it from the backend.
- With a non-expiring cache, the cached collection is updated in place. If
  `init` fails in the backend, the new data is still cached.

`flagstore.persistent_store_cache.CachePair` is the cache the wrapper uses
internally. Its TTL works the same way: `None` means it never expires, and
zero means it caches nothing. The wrapper and `CachePair` both accept a
`clock` keyword argument, which defaults to `time.monotonic`, so expiry can
be controlled in tests.

## Serialization

`to_serialized_item(item)` turns a `Flag`, `Segment` or `Tombstone` into a
`SerializedItem(version, deleted, serialized_item)`.
`from_serialized_item(kind, serialized)` turns it back into an item.

- A tombstone is stored as
  `{"version": n, "key": "$deleted", "deleted": true}`. It is recognised even
  when the `deleted` field of the `SerializedItem` is false.
- `serialize_all_data(all_data)` serializes a complete data set.
- Invalid JSON or invalid items raise `SerializationError`.

## What this package does not do

- It includes no database backend. `PersistentDataStore` is only an
  interface, and you must supply the implementation for your storage.
- It does not evaluate flags.
- It does not fetch data from a flag service.
- It has no command-line interface.

## Version

```python
from flagstore.version import version_string
version_string()   # "0.1.0"
```

## Running the tests

```
pip install -e ".[test]"
pytest
```
# toolsak

A small library of everyday helpers:

- `toolsak.eta` – estimate how long the rest of a job will take.
- `toolsak.timestamps` – parse JSON epoch numbers and zone-less ISO timestamps.
- `toolsak.result` – a `Result` value that carries data or an error.
- `toolsak.stores` – in-memory, on-disk and two-tier byte stores with expiry.
- `toolsak.memo` – memoize computations over those stores; concurrent calls
  for the same key share one computation.
- `toolsak.releases` – fetch the latest release of a hosted repository, compare
  semantic versions and check whether a version is outdated.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Estimating time remaining

```python
from datetime import timedelta
from toolsak.eta import calculate_eta

calculate_eta(10, 3, timedelta(minutes=30))  # timedelta(minutes=70)
calculate_eta(10, 10, timedelta(hours=1))    # timedelta(0)
calculate_eta(0, 5, timedelta(hours=1))      # timedelta(days=7), the fallback
```

The average time per completed unit is multiplied by the units left. A
non-positive total, completed count or elapsed time gives seven days.

## Parsing timestamps

```python
from toolsak.timestamps import parse_epoch_time, parse_notz_time

parse_epoch_time("1672531200")              # 2023-01-01 00:00:00+00:00
parse_epoch_time("1672531200.5")            # fraction dropped
parse_notz_time('"2023-12-15T14:30:45"')    # 2023-12-15 14:30:45+00:00
```

Both take raw JSON (`str` or `bytes`) and return an aware UTC `datetime`.
They raise `ValueError` for malformed JSON or a value of the wrong JSON type;
`parse_epoch_time` also for negative numbers ("invalid epoch time"), and
`parse_notz_time` for an empty string ("invalid timestamp") or text that is
not a valid `YYYY-MM-DDTHH:MM:SS` time.

## Result

```python
from toolsak.result import Result

Result(data=42).is_success()                        # True
Result(err=RuntimeError("failed")).is_success()     # False
```

## Stores

`toolsak.stores` defines the abstract `Store` (`get`, `set`, `close`, and use
as a context manager) and three implementations. `CacheOpts(max_entries,
max_capacity)` sets limits; zero selects the defaults of 1,000,000 entries
and 1 GiB.

- `MemoryStore(opts)` – an LRU cache bounded by entry count and total bytes.
  A TTL of zero means no expiry; a negative TTL stores nothing.
- `DiskStore(path, opts)` – entries kept in an SQLite file inside the
  directory `path`, which is created if missing. The capacity must lie
  between 1 MiB and 2 GiB, and an empty path is rejected with `ValueError`.
  An entry with a TTL of zero or less expires at once.
- `CompositeStore(mem, disk, hot_ttl)` – reads memory first, then disk, and
  copies disk hits into memory for `hot_ttl` when it is positive. Writes and
  closing go to both tiers; the first failure is raised afterwards.

TTLs are a `timedelta` or a number of seconds.

## Memoizing

```python
from datetime import timedelta
from toolsak.memo import key_from, new_memory_only
from toolsak.stores import CacheOpts

with new_memory_only(CacheOpts()) as memoizer:
    key = key_from("user", 42)
    value = memoizer.do(key, timedelta(minutes=5), lambda: expensive_lookup(42))
```

`Memoizer.do(key, ttl, compute)` returns the cached value for `key`, or calls
`compute()` on a miss and caches its pickled result. Errors raised by reading
the store or by `compute` propagate; a failed write to the store is ignored.
Concurrent misses on the same key are deduplicated by `SingleFlight`.

`key_from(*args)` returns a hex SHA-256 digest; equal values in the same order
give the same key, and dict and set order does not matter.

Other constructors: `new_disk_only(directory, opts)` and
`new_memory_disk(path, opts, promote_ttl)`. Closing the memoizer closes its
store.

## Releases

```python
from toolsak.releases import compare_versions, get_latest_release, is_outdated_release

release = get_latest_release("some-owner", "some-repo")
print(release.tag_name, [asset.name for asset in release.assets])

compare_versions("v1.2.0", "v1.1.0")   # 1
is_outdated_release("some-owner", "some-repo", "1.0.0")
```

`get_latest_release` raises `ReleaseError` (with `status_code` set for HTTP
errors) when the names are empty, the request fails or there is no release.
`is_outdated_release` compares the repository's newest tag with the given
version, adding a missing `v` prefix to both, and returns `False` on any
failure. `compare_versions` and `is_valid_version` work on `v`-prefixed
semantic versions; `parse_release` builds a `Release` from a decoded API
response.

## What it does not do

- There is no command-line tool; everything is used as a library.
- Release requests are made without authentication, so they are subject to
  the API's anonymous rate limits.
- The disk store is a single SQLite file; it does not compress entries and
  does not enforce its entry or capacity limits beyond validating them.
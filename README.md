# cqlkit

Building blocks for Cassandra clients written in Python:

- **Value encoding** (`cqlkit.marshal`): `marshal(info, value)` turns a
  Python value into its CQL binary form and `unmarshal(info, data)` turns it
  back, for the native types and for lists, sets, maps, tuples and
  user-defined types. The per-type functions live in `cqlkit.numeric`
  (integers, varint, floats, decimal, boolean) and `cqlkit.scalars` (text,
  blob, timestamp, time, date, duration, uuid, timeuuid, inet). The raw wire
  encodings (fixed-width integers, two's complement, zig-zag vints,
  collection sizes, length-prefixed values) are in `cqlkit.encoding`.
- **Type descriptions** (`cqlkit.types`): the `Type` enum, `NativeType`,
  `CollectionType`, `TupleTypeInfo`, `UDTTypeInfo` and `Duration`, the
  `MarshalError` / `UnmarshalError` exceptions, and parsers for CQL type
  strings such as `frozen<map<text, list<int>>>` (`get_cassandra_type`) and
  for `org.apache.cassandra.db.marshal` class names
  (`get_apache_cassandra_type`, `apache_to_cassandra_type`).
- **Token hashing** (`cqlkit.murmur`): `murmur3_h1`, the Murmur3 variant
  Cassandra's partitioner uses, returned as a signed 64-bit integer.
- **Stream ids** (`cqlkit.streams`): `StreamIDGenerator` hands out and
  releases protocol stream ids (128 for protocol 2 and below, 32768 above;
  stream 0 is reserved).
- **LRU cache** (`cqlkit.lru`): `LRUCache`, a small string-keyed cache with
  an optional size limit and eviction callback.

It has no third-party dependencies.

## Install

    pip install .

## Examples

Encode and decode values:

    from cqlkit.types import NativeType, CollectionType, Type
    from cqlkit.marshal import marshal, unmarshal

    info = NativeType(type=Type.INT, proto=4)
    data = marshal(info, 16909060)          # b"\x01\x02\x03\x04"
    unmarshal(info, data)                   # 16909060

    ints = CollectionType(type=Type.LIST, proto=4,
                          elem=NativeType(type=Type.INT, proto=4))
    unmarshal(ints, marshal(ints, [1, 2]))  # [1, 2]

`marshal` returns `None` for a null value, and `unmarshal` returns `None`
for null data. Decoded values are plain Python types: `int`, `float`,
`decimal.Decimal`, `str`, `bytes`, UTC `datetime.datetime`, `uuid.UUID`,
`list`, `dict`, `tuple` and `Duration`; inet addresses decode to their text
form.

Parse a type string:

    from cqlkit.types import get_cassandra_type

    str(get_cassandra_type("map<text, varchar>"))   # "map(text, varchar)"

Compute a partition token:

    from cqlkit.murmur import murmur3_h1

    murmur3_h1(b"hello")

Allocate stream ids:

    from cqlkit.streams import StreamIDGenerator

    ids = StreamIDGenerator(protocol=4)
    stream = ids.get_stream()      # None when every id is in use
    ids.clear(stream)              # True; False if it was already free

Cache values:

    from cqlkit.lru import LRUCache

    cache = LRUCache(max_entries=2)
    cache.add("a", 1)
    cache.get("a")                 # 1

Failures are raised as `MarshalError` or `UnmarshalError` from
`cqlkit.types`.

## What it does not do

cqlkit does not open connections, run queries, or keep sessions. It has no
description of cluster hosts or server versions and does not discover peers,
and it offers no tooling for starting or stopping local test clusters. It is
meant to sit underneath a client that supplies those parts.

## Tests

    pip install ".[test]"
    pytest
"""CQL value encoding, type parsing, token hashing, stream ids and an LRU cache."""

__version__ = "0.1.0"

__all__ = ["encoding", "lru", "marshal", "murmur", "numeric", "scalars", "streams", "types"]
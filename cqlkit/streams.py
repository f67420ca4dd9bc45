"""Allocation of protocol stream identifiers from a bitset."""

from __future__ import annotations

import threading
from typing import Optional

BUCKET_BITS = 64
_FULL = (1 << BUCKET_BITS) - 1


def stream_offset(stream: int) -> int:
    """Bit position of ``stream`` inside its bucket, counted from the low bit."""
    return BUCKET_BITS - (stream % BUCKET_BITS) - 1


def bucket_offset(stream: int) -> int:
    """Index of the bucket holding ``stream``."""
    return stream // BUCKET_BITS


def stream_from_bucket(bucket: int, stream_in_bucket: int) -> int:
    """Stream number for position ``stream_in_bucket`` of ``bucket``."""
    return bucket * BUCKET_BITS + stream_in_bucket


def is_bit_set(bits: int, stream: int) -> bool:
    """Whether ``stream`` is marked in use in the bucket value ``bits``."""
    return (bits >> stream_offset(stream)) & 1 == 1


class StreamIDGenerator:
    """Tracks and hands out stream ids; stream 0 is always reserved."""

    def __init__(self, protocol: int):
        self.num_streams = 32768 if protocol > 2 else 128
        self._num_buckets = self.num_streams // BUCKET_BITS
        self._streams = [0] * self._num_buckets
        self._streams[0] = 1 << 63
        self._offset = self._num_buckets - 1
        self._in_use = 0
        self._lock = threading.Lock()

    def get_stream(self) -> Optional[int]:
        """Allocate a free stream id, or return None when all are in use."""
        with self._lock:
            self._offset = (self._offset + 1) % self._num_buckets
            start = self._offset
            for i in range(self._num_buckets):
                pos = (start + i) % self._num_buckets
                bucket = self._streams[pos]
                if bucket == _FULL:
                    continue
                for j in range(BUCKET_BITS):
                    mask = 1 << stream_offset(j)
                    if not bucket & mask:
                        self._streams[pos] = bucket | mask
                        self._in_use += 1
                        return stream_from_bucket(pos, j)
            return None

    def clear(self, stream: int) -> bool:
        """Release ``stream``; return False if it was not in use."""
        with self._lock:
            offset = bucket_offset(stream)
            mask = 1 << stream_offset(stream)
            bucket = self._streams[offset]
            if bucket & mask != mask:
                return False
            self._streams[offset] = bucket & ~mask
            self._in_use -= 1
            if self._in_use < 0:
                raise RuntimeError("negative streams inuse")
            return True

    def is_set(self, stream: int) -> bool:
        """Whether ``stream`` is currently in use."""
        return is_bit_set(self._streams[bucket_offset(stream)], stream)

    def available(self) -> int:
        """Number of stream ids still free."""
        return self.num_streams - self._in_use - 1

    def __str__(self) -> str:
        return " ".join(format(bits, "x") for bits in self._streams)
"""Murmur3 (x64, 128-bit) hash returning the first half, as Cassandra computes it.

Cassandra's partitioner sign-extends the tail bytes before mixing them, so
this differs from the reference Murmur3 for inputs whose tail has bytes of
0x80 or more. Results are returned as signed 64-bit integers.
"""

from __future__ import annotations

import struct

_MASK = (1 << 64) - 1

_C1 = 0x87C37B91114253D5
_C2 = 0x4CF5AD432745937F
_FMIX1 = 0xFF51AFD7ED558CCD
_FMIX2 = 0xC4CEB9FE1A85EC53


def _to_signed(x: int) -> int:
    x &= _MASK
    return x - (1 << 64) if x >> 63 else x


def _rotl(x: int, r: int) -> int:
    return ((x << r) | (x >> (64 - r))) & _MASK


def _fmix(n: int) -> int:
    n ^= n >> 33
    n = (n * _FMIX1) & _MASK
    n ^= n >> 33
    n = (n * _FMIX2) & _MASK
    n ^= n >> 33
    return n


def _signed_byte(b: int) -> int:
    return b - 256 if b >= 128 else b


def rotl(x: int, r: int) -> int:
    """Rotate the signed 64-bit value ``x`` left by ``r`` bits."""
    return _to_signed(_rotl(x & _MASK, r))


def fmix(n: int) -> int:
    """Apply the Murmur3 64-bit finalisation mix to a signed 64-bit value."""
    return _to_signed(_fmix(n & _MASK))


def _mix_k1(k1: int) -> int:
    k1 = (k1 * _C1) & _MASK
    k1 = _rotl(k1, 31)
    return (k1 * _C2) & _MASK


def _mix_k2(k2: int) -> int:
    k2 = (k2 * _C2) & _MASK
    k2 = _rotl(k2, 33)
    return (k2 * _C1) & _MASK


def murmur3_h1(data: bytes) -> int:
    """Return the first 64 bits of the Cassandra Murmur3 hash of ``data``."""
    data = bytes(data)
    length = len(data)
    n_blocks = length // 16
    h1 = h2 = 0

    for k1, k2 in struct.iter_unpack("<QQ", data[: n_blocks * 16]):
        h1 ^= _mix_k1(k1)
        h1 = _rotl(h1, 27)
        h1 = (h1 + h2) & _MASK
        h1 = (h1 * 5 + 0x52DCE729) & _MASK

        h2 ^= _mix_k2(k2)
        h2 = _rotl(h2, 31)
        h2 = (h2 + h1) & _MASK
        h2 = (h2 * 5 + 0x38495AB5) & _MASK

    tail = data[n_blocks * 16 :]
    remainder = length & 15

    if remainder > 8:
        k2 = 0
        for i in range(8, remainder):
            k2 ^= _signed_byte(tail[i]) << (8 * (i - 8))
        h2 ^= _mix_k2(k2 & _MASK)

    if remainder > 0:
        k1 = 0
        for i in range(min(remainder, 8)):
            k1 ^= _signed_byte(tail[i]) << (8 * i)
        h1 ^= _mix_k1(k1 & _MASK)

    h1 ^= length
    h2 ^= length

    h1 = (h1 + h2) & _MASK
    h2 = (h2 + h1) & _MASK

    h1 = _fmix(h1)
    h2 = _fmix(h2)

    return _to_signed(h1 + h2)
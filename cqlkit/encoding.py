"""Low-level binary encodings used by the CQL wire format."""

from __future__ import annotations

from typing import Optional

from cqlkit.types import MarshalError, UnmarshalError

_MASK64 = (1 << 64) - 1
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_NULL_LENGTH = b"\xff\xff\xff\xff"


def _wrap_int32(x: int) -> int:
    return ((x + (1 << 31)) % (1 << 32)) - (1 << 31)


def enc_int(x: int) -> bytes:
    """Big-endian 32-bit encoding of ``x``; higher bits are dropped."""
    return (x & 0xFFFFFFFF).to_bytes(4, "big")


def dec_int(data: bytes) -> int:
    """Signed 32-bit value of ``data``, or 0 unless it is exactly 4 bytes."""
    if len(data) != 4:
        return 0
    return int.from_bytes(data, "big", signed=True)


def enc_short(x: int) -> bytes:
    """Big-endian 16-bit encoding of ``x``; higher bits are dropped."""
    return (x & 0xFFFF).to_bytes(2, "big")


def dec_short(data: bytes) -> int:
    """Signed 16-bit value of ``data``, or 0 unless it is exactly 2 bytes."""
    if len(data) != 2:
        return 0
    return int.from_bytes(data, "big", signed=True)


def dec_tiny(data: bytes) -> int:
    """Signed 8-bit value of ``data``, or 0 unless it is exactly 1 byte."""
    if len(data) != 1:
        return 0
    return int.from_bytes(data, "big", signed=True)


def enc_bigint(x: int) -> bytes:
    """Big-endian 64-bit encoding of ``x``; higher bits are dropped."""
    return (x & _MASK64).to_bytes(8, "big")


def dec_bigint(data: bytes) -> int:
    """Signed 64-bit value of ``data``, or 0 unless it is exactly 8 bytes."""
    if len(data) != 8:
        return 0
    return int.from_bytes(data, "big", signed=True)


def enc_bigint_2c(n: int) -> bytes:
    """Shortest big-endian two's complement form of ``n``."""
    magnitude = n if n >= 0 else ~n
    length = (magnitude.bit_length() + 8) // 8
    return n.to_bytes(length, "big", signed=True)


def dec_bigint_2c(data: bytes) -> int:
    """Value of big-endian two's complement ``data``; empty data is 0."""
    return int.from_bytes(data, "big", signed=True)


def zigzag_encode(n: int) -> int:
    """Map a signed 64-bit integer onto an unsigned one, small magnitudes first."""
    if not _INT64_MIN <= n <= _INT64_MAX:
        raise ValueError(f"value {n} does not fit in 64 bits")
    return ((n << 1) ^ (n >> 63)) & _MASK64


def zigzag_decode(n: int) -> int:
    """Inverse of :func:`zigzag_encode`."""
    n &= _MASK64
    return (n >> 1) ^ -(n & 1)


def enc_vint(v: int) -> bytes:
    """Variable-length, zig-zag encoding of a signed 64-bit integer."""
    encoded = zigzag_encode(v)
    leading_zeros = 64 - encoded.bit_length()
    num_bytes = (639 - leading_zeros * 9) >> 6
    if num_bytes <= 1:
        return bytes([encoded & 0xFF])
    extra_bytes = num_bytes - 1
    buf = bytearray((encoded & ((1 << (8 * num_bytes)) - 1)).to_bytes(num_bytes, "big"))
    buf[0] |= ~(0xFF >> extra_bytes) & 0xFF
    return bytes(buf)


def dec_vint(data: bytes) -> tuple[int, int]:
    """Decode one variable-length integer; return it and the bytes consumed."""
    if not data:
        raise UnmarshalError("unmarshal vint: unexpected eof")
    first = data[0]
    if first & 0x80 == 0:
        return zigzag_decode(first), 1
    num_bytes = 8 - ((~first) & 0xFF).bit_length()
    if len(data) < num_bytes + 1:
        raise UnmarshalError("unmarshal vint: unexpected eof")
    ret = first & (0xFF >> num_bytes)
    for b in data[1 : num_bytes + 1]:
        ret = (ret << 8) | b
    return zigzag_decode(ret), num_bytes + 1


def enc_vints(months: int, days: int, nanos: int) -> bytes:
    """Encode the three parts of a duration."""
    return enc_vint(months) + enc_vint(days) + enc_vint(nanos)


def dec_vints(data: bytes) -> tuple[int, int, int]:
    """Decode the months, days and nanoseconds of a duration."""
    months, used = dec_vint(data)
    days, used_days = dec_vint(data[used:])
    nanos, _ = dec_vint(data[used + used_days :])
    return _wrap_int32(months), _wrap_int32(days), nanos


def write_collection_size(proto: int, n: int) -> bytes:
    """Encode a collection size or element length for protocol ``proto``."""
    if proto > 2:
        if n > 0x7FFFFFFF:
            raise MarshalError("marshal: collection too large")
        return (n & 0xFFFFFFFF).to_bytes(4, "big")
    if n > 0xFFFF:
        raise MarshalError("marshal: collection too large")
    return (n & 0xFFFF).to_bytes(2, "big")


def read_collection_size(proto: int, data: bytes) -> tuple[int, int]:
    """Read a collection size; return it and the number of bytes read."""
    width = 4 if proto > 2 else 2
    if len(data) < width:
        raise UnmarshalError("unmarshal: unexpected eof")
    return int.from_bytes(data[:width], "big"), width


def append_bytes(buf: bytes, data: Optional[bytes]) -> bytes:
    """Append ``data`` as a length-prefixed value; None is written as null."""
    if data is None:
        return bytes(buf) + _NULL_LENGTH
    return bytes(buf) + enc_int(len(data)) + bytes(data)


def read_bytes(data: bytes) -> tuple[Optional[bytes], bytes]:
    """Read one length-prefixed value; return it (None for null) and the rest."""
    if len(data) < 4:
        raise UnmarshalError("unmarshal: unexpected eof")
    size = int.from_bytes(data[:4], "big", signed=True)
    rest = data[4:]
    if size < 0:
        return None, rest
    if len(rest) < size:
        raise UnmarshalError("unmarshal: unexpected eof")
    return rest[:size], rest[size:]
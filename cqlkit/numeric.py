"""Encoding and decoding of CQL numeric and boolean values."""

from __future__ import annotations

import decimal
import re
import struct
from typing import Any, Callable, Optional

from cqlkit.encoding import (
    dec_bigint,
    dec_bigint_2c,
    dec_int,
    dec_short,
    dec_tiny,
    enc_bigint,
    enc_bigint_2c,
    enc_int,
    enc_short,
)
from cqlkit.types import Marshaler, MarshalError, TypeInfo, UnmarshalError

_INT_TEXT = re.compile(r"[+-]?[0-9]+")


def _type_name(value: Any) -> str:
    return type(value).__name__


def _parse_int(info: TypeInfo, text: str, bits: int) -> int:
    if not _INT_TEXT.fullmatch(text):
        raise MarshalError(f"can not marshal str into {info}: invalid syntax {text!r}")
    n = int(text)
    if not -(1 << (bits - 1)) <= n < (1 << (bits - 1)):
        raise MarshalError(f"can not marshal str into {info}: value {text!r} out of range")
    return n


def _marshal_fixed(
    info: TypeInfo, value: Any, bits: int, label: str, encode: Callable[[int], bytes]
) -> Optional[bytes]:
    # Integers are accepted from the signed minimum up to the unsigned maximum.
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    if value is None:
        return None
    if isinstance(value, bool):
        raise MarshalError(f"can not marshal bool into {info}")
    if isinstance(value, int):
        if not -(1 << (bits - 1)) <= value < (1 << bits):
            raise MarshalError(f"marshal {label}: value {value} out of range")
        return encode(value)
    if isinstance(value, str):
        return encode(_parse_int(info, value, bits))
    raise MarshalError(f"can not marshal {_type_name(value)} into {info}")


def marshal_tinyint(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a value as a one-byte integer."""
    return _marshal_fixed(info, value, 8, "tinyint", lambda n: bytes([n & 0xFF]))


def marshal_smallint(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a value as a two-byte integer."""
    return _marshal_fixed(info, value, 16, "smallint", enc_short)


def marshal_int(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a value as a four-byte integer."""
    return _marshal_fixed(info, value, 32, "int", enc_int)


def marshal_bigint(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a value as an eight-byte integer."""
    return _marshal_fixed(info, value, 64, "bigint", enc_bigint)


def marshal_varint(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode an integer of any size in its shortest two's complement form."""
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    if value is None:
        return None
    if isinstance(value, bool):
        raise MarshalError(f"can not marshal bool into {info}")
    if isinstance(value, int):
        return enc_bigint_2c(value)
    if isinstance(value, str):
        return enc_bigint_2c(_parse_int(info, value, 64))
    raise MarshalError(f"can not marshal {_type_name(value)} into {info}")


def marshal_bool(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a boolean as a single byte."""
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    if value is None:
        return None
    if isinstance(value, bool):
        return b"\x01" if value else b"\x00"
    raise MarshalError(f"can not marshal {_type_name(value)} into {info}")


def _marshal_real(info: TypeInfo, value: Any, fmt: str) -> Optional[bytes]:
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return struct.pack(fmt, float(value))
        except (OverflowError, struct.error) as exc:
            raise MarshalError(f"can not marshal {value!r} into {info}: {exc}") from exc
    raise MarshalError(f"can not marshal {_type_name(value)} into {info}")


def marshal_float(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a number as an IEEE 754 single precision float."""
    return _marshal_real(info, value, ">f")


def marshal_double(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a number as an IEEE 754 double precision float."""
    return _marshal_real(info, value, ">d")


def marshal_decimal(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a Decimal as a 32-bit scale followed by the unscaled varint."""
    if value is None:
        return None
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    if not isinstance(value, decimal.Decimal) or not value.is_finite():
        raise MarshalError(f"can not marshal {_type_name(value)} into {info}")
    sign, digits, exponent = value.as_tuple()
    unscaled = int("".join(map(str, digits)) or "0")
    if sign:
        unscaled = -unscaled
    scale = -exponent
    if not -(1 << 31) <= scale < (1 << 31):
        raise MarshalError(f"can not marshal {value} into {info}: scale out of range")
    return enc_int(scale) + enc_bigint_2c(unscaled)


def unmarshal_tinyint(info: TypeInfo, data: Optional[bytes]) -> Optional[int]:
    """Decode a one-byte integer; null decodes to None."""
    return None if data is None else dec_tiny(data)


def unmarshal_smallint(info: TypeInfo, data: Optional[bytes]) -> Optional[int]:
    """Decode a two-byte integer; null decodes to None."""
    return None if data is None else dec_short(data)


def unmarshal_int(info: TypeInfo, data: Optional[bytes]) -> Optional[int]:
    """Decode a four-byte integer; null decodes to None."""
    return None if data is None else dec_int(data)


def unmarshal_bigint(info: TypeInfo, data: Optional[bytes]) -> Optional[int]:
    """Decode an eight-byte integer; null decodes to None."""
    return None if data is None else dec_bigint(data)


def unmarshal_varint(info: TypeInfo, data: Optional[bytes]) -> Optional[int]:
    """Decode a two's complement integer of any size; null decodes to None."""
    return None if data is None else dec_bigint_2c(data)


def unmarshal_bool(info: TypeInfo, data: Optional[bytes]) -> Optional[bool]:
    """Decode a boolean; empty data is False and null decodes to None."""
    if data is None:
        return None
    return bool(data) and data[0] != 0


def unmarshal_float(info: TypeInfo, data: Optional[bytes]) -> Optional[float]:
    """Decode a single precision float; null decodes to None."""
    if data is None:
        return None
    return struct.unpack(">f", enc_int(dec_int(data)))[0]


def unmarshal_double(info: TypeInfo, data: Optional[bytes]) -> Optional[float]:
    """Decode a double precision float; null decodes to None."""
    if data is None:
        return None
    return struct.unpack(">d", enc_bigint(dec_bigint(data)))[0]


def unmarshal_decimal(info: TypeInfo, data: Optional[bytes]) -> Optional[decimal.Decimal]:
    """Decode a scale and unscaled varint into a Decimal; null decodes to None."""
    if data is None:
        return None
    if len(data) < 4:
        raise UnmarshalError(f"unmarshal {info}: unexpected eof")
    scale = dec_int(data[:4])
    unscaled = dec_bigint_2c(data[4:])
    digits = tuple(int(d) for d in str(abs(unscaled)))
    return decimal.Decimal((1 if unscaled < 0 else 0, digits, -scale))
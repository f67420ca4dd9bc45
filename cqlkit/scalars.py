"""Encoding and decoding of CQL text, time, uuid and inet values."""

from __future__ import annotations

import datetime
import ipaddress
import re
import uuid
from fractions import Fraction
from typing import Any, Optional, Union

from cqlkit.encoding import dec_bigint, dec_vints, enc_bigint, enc_int, enc_vints
from cqlkit.types import Duration, Marshaler, MarshalError, Type, TypeInfo, UnmarshalError

_UTC = datetime.timezone.utc
_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=_UTC)
_EPOCH_DATE = datetime.date(1970, 1, 1)
# The zero time is stored as an empty value rather than as a timestamp.
_ZERO_TIME = datetime.datetime(1, 1, 1, tzinfo=_UTC)
_MS_PER_DAY = 86_400_000
_DATE_ORIGIN = 1 << 31
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1

_DATE_TEXT = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_DURATION_PART = re.compile(r"([0-9]*(?:\.[0-9]*)?)(ns|us|µs|μs|ms|h|m|s)")
_DURATION_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}


def _type_name(value: Any) -> str:
    return type(value).__name__


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check_int64(info: TypeInfo, value: int) -> int:
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise MarshalError(f"can not marshal {value} into {info}: value out of range")
    return value


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    return value.replace(tzinfo=_UTC) if value.tzinfo is None else value


def _unix_millis(value: datetime.datetime) -> int:
    delta = _as_utc(value) - _EPOCH
    return delta.days * _MS_PER_DAY + delta.seconds * 1000 + delta.microseconds // 1000


def _timedelta_nanos(value: datetime.timedelta) -> int:
    return (value.days * 86_400 + value.seconds) * 1_000_000_000 + value.microseconds * 1000


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // b
    return q if a >= 0 else -q


def _parse_duration(info: TypeInfo, text: str) -> int:
    """Parse a duration such as ``1h10m10s`` or ``-1.5ms`` into nanoseconds."""
    invalid = MarshalError(f"can not marshal str into {info}: invalid duration {text!r}")
    rest = text
    negative = False
    if rest[:1] in ("+", "-"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return 0
    if not rest:
        raise invalid
    total = Fraction(0)
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        if match is None:
            raise invalid
        number, unit = match.groups()
        if number in ("", "."):
            raise invalid
        total += Fraction(number) * _DURATION_UNITS[unit]
        pos = match.end()
    nanos = int(total)
    if negative:
        nanos = -nanos
    if not _INT64_MIN <= nanos <= _INT64_MAX:
        raise invalid
    return nanos


def marshal_varchar(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode text as UTF-8 or pass bytes through unchanged."""
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise MarshalError(f"can not marshal {_type_name(value)} into {info}")


def unmarshal_varchar(info: TypeInfo, data: Optional[bytes]) -> Union[str, bytes, None]:
    """Decode text, or bytes for a blob; null decodes to None."""
    if data is None:
        return None
    if info.type == Type.BLOB:
        return bytes(data)
    try:
        return bytes(data).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise UnmarshalError(f"can not unmarshal {info} into str: {exc}") from exc


def marshal_timestamp(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode milliseconds since the epoch, or nanoseconds for a timedelta.

    Naive datetimes are taken to be UTC; the zero time is stored as empty.
    """
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    if value is None:
        return None
    if _is_int(value):
        return enc_bigint(_check_int64(info, value))
    if isinstance(value, datetime.datetime):
        if _as_utc(value) == _ZERO_TIME:
            return b""
        return enc_bigint(_check_int64(info, _unix_millis(value)))
    if isinstance(value, datetime.timedelta):
        return enc_bigint(_check_int64(info, _timedelta_nanos(value)))
    raise MarshalError(f"can not marshal {_type_name(value)} into {info}")


def unmarshal_timestamp(
    info: TypeInfo, data: Optional[bytes]
) -> Union[datetime.datetime, int, None]:
    """Decode a UTC datetime; a time column decodes to nanoseconds since midnight.

    Null decodes to None and an empty timestamp to the zero time.
    """
    if data is None:
        return None
    if info.type == Type.TIME:
        return dec_bigint(data)
    if len(data) == 0:
        return _ZERO_TIME
    millis = dec_bigint(data)
    try:
        return _EPOCH + datetime.timedelta(milliseconds=millis)
    except OverflowError as exc:
        raise UnmarshalError(f"can not unmarshal {info}: timestamp {millis} out of range") from exc


def _encode_days(days: int) -> bytes:
    return enc_int(days + _DATE_ORIGIN)


def marshal_date(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a date as days since the epoch, offset by 2**31.

    Accepts milliseconds since the epoch, a datetime, a date or a
    ``YYYY-MM-DD`` string; an empty string or the zero time is stored as empty.
    """
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    if value is None:
        return None
    if _is_int(value):
        return _encode_days(_trunc_div(_check_int64(info, value), _MS_PER_DAY))
    if isinstance(value, datetime.datetime):
        if _as_utc(value) == _ZERO_TIME:
            return b""
        return _encode_days(_trunc_div(_unix_millis(value), _MS_PER_DAY))
    if isinstance(value, datetime.date):
        return _encode_days((value - _EPOCH_DATE).days)
    if isinstance(value, str):
        if value == "":
            return b""
        try:
            if not _DATE_TEXT.fullmatch(value):
                raise ValueError(value)
            parsed = datetime.date.fromisoformat(value)
        except ValueError as exc:
            raise MarshalError(
                f"can not marshal str into {info}, date layout must be 'YYYY-MM-DD'"
            ) from exc
        return _encode_days((parsed - _EPOCH_DATE).days)
    raise MarshalError(f"can not marshal {_type_name(value)} into {info}")


def unmarshal_date(info: TypeInfo, data: Optional[bytes]) -> Optional[datetime.datetime]:
    """Decode a date into midnight UTC of that day; null decodes to None."""
    if data is None:
        return None
    if len(data) == 0:
        return _ZERO_TIME
    if len(data) < 4:
        raise UnmarshalError(f"can not unmarshal {info}: unexpected eof")
    days = int.from_bytes(data[:4], "big") - _DATE_ORIGIN
    try:
        return _EPOCH + datetime.timedelta(days=days)
    except OverflowError as exc:
        raise UnmarshalError(f"can not unmarshal {info}: date out of range") from exc


def marshal_duration(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a Duration, a timedelta, nanoseconds or a string such as ``1h10m``."""
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    if value is None:
        return None
    if isinstance(value, Duration):
        return enc_vints(value.months, value.days, value.nanoseconds)
    if _is_int(value):
        return enc_vints(0, 0, _check_int64(info, value))
    if isinstance(value, datetime.timedelta):
        return enc_vints(0, 0, _check_int64(info, _timedelta_nanos(value)))
    if isinstance(value, str):
        return enc_vints(0, 0, _parse_duration(info, value))
    raise MarshalError(f"can not marshal {_type_name(value)} into {info}")


def unmarshal_duration(info: TypeInfo, data: Optional[bytes]) -> Optional[Duration]:
    """Decode a Duration; null decodes to None and empty data to a zero Duration."""
    if data is None:
        return None
    if len(data) == 0:
        return Duration()
    months, days, nanos = dec_vints(data)
    return Duration(months=months, days=days, nanoseconds=nanos)


def marshal_uuid(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a UUID, its 16 raw bytes or its string form."""
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value.bytes
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) != 16:
            raise MarshalError(
                f"can not marshal bytes {len(raw)} bytes long into {info}, "
                "must be exactly 16 bytes long"
            )
        return raw
    if isinstance(value, str):
        try:
            return uuid.UUID(value).bytes
        except ValueError as exc:
            raise MarshalError(f"invalid UUID {value!r}") from exc
    raise MarshalError(f"can not marshal {_type_name(value)} into {info}")


def unmarshal_uuid(info: TypeInfo, data: Optional[bytes]) -> Optional[uuid.UUID]:
    """Decode a UUID; null or empty data decodes to None."""
    if not data:
        return None
    if len(data) != 16:
        raise UnmarshalError("Unable to parse UUID: UUIDs must be exactly 16 bytes long")
    return uuid.UUID(bytes=bytes(data))


def unmarshal_timeuuid(info: TypeInfo, data: Optional[bytes]) -> Optional[uuid.UUID]:
    """Decode a time-based UUID; null or empty data decodes to None."""
    return unmarshal_uuid(info, data)


def _pack_ip(address: Union[ipaddress.IPv4Address, ipaddress.IPv6Address]) -> bytes:
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return address.ipv4_mapped.packed
    return address.packed


def marshal_inet(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode an IP address in its 4 or 16 byte form.

    IPv4-mapped IPv6 addresses are stored as plain IPv4 addresses.
    """
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    if value is None:
        return None
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return _pack_ip(value)
    if isinstance(value, str):
        try:
            return _pack_ip(ipaddress.ip_address(value))
        except ValueError as exc:
            raise MarshalError(f"cannot marshal. invalid ip string {value}") from exc
    raise MarshalError(f"cannot marshal {_type_name(value)} into {info}")


def unmarshal_inet(info: TypeInfo, data: Optional[bytes]) -> Optional[str]:
    """Decode an IP address into its text form; null or empty data decodes to None."""
    if not data:
        return None
    if len(data) not in (4, 16):
        raise UnmarshalError(
            f"cannot unmarshal {info} into str: invalid sized IP: got {len(data)} bytes not 4 or 16"
        )
    address = ipaddress.ip_address(bytes(data))
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return str(address.ipv4_mapped)
    return str(address)
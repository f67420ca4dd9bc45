import datetime
import ipaddress
import uuid

import pytest

from cqlkit.encoding import enc_vint
from cqlkit.scalars import (
    marshal_date,
    marshal_duration,
    marshal_inet,
    marshal_timestamp,
    marshal_uuid,
    marshal_varchar,
    unmarshal_date,
    unmarshal_duration,
    unmarshal_inet,
    unmarshal_timestamp,
    unmarshal_timeuuid,
    unmarshal_uuid,
    unmarshal_varchar,
)
from cqlkit.types import Duration, MarshalError, NativeType, Type, UnmarshalError

UTC = datetime.timezone.utc

VARCHAR = NativeType(Type.VARCHAR, proto=2)
BLOB = NativeType(Type.BLOB, proto=2)
TIMESTAMP = NativeType(Type.TIMESTAMP, proto=2)
TIME = NativeType(Type.TIME, proto=2)
DATE = NativeType(Type.DATE, proto=4)
DURATION = NativeType(Type.DURATION, proto=5)
TIMEUUID = NativeType(Type.TIMEUUID, proto=2)
UUID_TYPE = NativeType(Type.UUID, proto=2)
INET = NativeType(Type.INET, proto=2)

UUID_BYTES = bytes(
    [0x3D, 0xCD, 0x98, 0x0, 0xF3, 0xD9, 0x11, 0xBF, 0x86, 0xD4, 0xB8, 0xE8, 0x56, 0x2C, 0xC, 0xD0]
)
TS_BYTES = b"\x00\x00\x01\x40\x77\x16\xe1\xb8"
TS_VALUE = datetime.datetime(2013, 8, 13, 9, 52, 3, tzinfo=UTC)


class CustomString(str):
    def marshal_cql(self, info):
        return self.upper().encode()


# varchar / blob


@pytest.mark.parametrize(
    "info, value, expected",
    [
        (VARCHAR, "hello world", b"hello world"),
        (VARCHAR, b"hello world", b"hello world"),
        (BLOB, b"hello\x00", b"hello\x00"),
        (VARCHAR, CustomString("hello world"), b"HELLO WORLD"),
        (VARCHAR, None, None),
        (BLOB, None, None),
    ],
)
def test_marshal_varchar(info, value, expected):
    assert marshal_varchar(info, value) == expected


def test_marshal_varchar_rejects_int():
    with pytest.raises(MarshalError):
        marshal_varchar(VARCHAR, 12)


def test_unmarshal_varchar_text_and_blob():
    assert unmarshal_varchar(VARCHAR, b"hello world") == "hello world"
    assert unmarshal_varchar(BLOB, b"hello\x00") == b"hello\x00"
    assert unmarshal_varchar(VARCHAR, b"") == ""
    assert unmarshal_varchar(VARCHAR, None) is None


def test_unmarshal_varchar_invalid_utf8():
    with pytest.raises(UnmarshalError):
        unmarshal_varchar(VARCHAR, b"\xff\xfe")


# timestamp / time


def test_timestamp_datetime_round_trip():
    assert marshal_timestamp(TIMESTAMP, TS_VALUE) == TS_BYTES
    assert unmarshal_timestamp(TIMESTAMP, TS_BYTES) == TS_VALUE


def test_timestamp_int_millis():
    assert marshal_timestamp(TIMESTAMP, 1376387523000) == TS_BYTES


def test_timestamp_naive_is_utc():
    assert marshal_timestamp(TIMESTAMP, TS_VALUE.replace(tzinfo=None)) == TS_BYTES


@pytest.mark.parametrize(
    "value, expected",
    [
        (datetime.datetime(2262, 4, 11, 23, 47, 16, 854775, tzinfo=UTC), b"\x00\x00\x08\x63\x7b\xd0\x5a\xf6"),
        (datetime.datetime(1677, 9, 21, 0, 12, 43, 145224, tzinfo=UTC), b"\xff\xff\xf7\x9c\x84\x2f\xa5\x09"),
        (datetime.datetime(1, 1, 1, tzinfo=UTC), b""),
    ],
)
def test_marshal_timestamp_extremes(value, expected):
    assert marshal_timestamp(TIMESTAMP, value) == expected


def test_unmarshal_timestamp_empty_is_zero_time():
    assert unmarshal_timestamp(TIMESTAMP, b"") == datetime.datetime(1, 1, 1, tzinfo=UTC)
    assert unmarshal_timestamp(TIMESTAMP, None) is None


def test_time_nanoseconds():
    data = marshal_timestamp(TIME, datetime.timedelta(microseconds=1))
    assert data == b"\x00\x00\x00\x00\x00\x00\x03\xe8"
    assert unmarshal_timestamp(TIME, data) == 1000


def test_marshal_timestamp_errors():
    with pytest.raises(MarshalError):
        marshal_timestamp(TIMESTAMP, "2013-08-13")
    with pytest.raises(MarshalError):
        marshal_timestamp(TIMESTAMP, 1 << 70)


# date


def test_unmarshal_date():
    assert unmarshal_date(DATE, b"\x80\x00\x43\x31") == datetime.datetime(2017, 2, 4, tzinfo=UTC)


@pytest.mark.parametrize(
    "value",
    [
        datetime.datetime(2017, 2, 4, 15, 30, tzinfo=UTC),
        int(datetime.datetime(2017, 2, 4, 15, 30, tzinfo=UTC).timestamp() * 1000),
        datetime.date(2017, 2, 4),
        "2017-02-04",
    ],
)
def test_marshal_date(value):
    assert marshal_date(DATE, value) == b"\x80\x00\x43\x31"


def test_marshal_date_empty():
    assert marshal_date(DATE, "") == b""
    assert marshal_date(DATE, None) is None


@pytest.mark.parametrize("text", ["2017-2-4", "not a date", "2017-13-01"])
def test_marshal_date_bad_string(text):
    with pytest.raises(MarshalError):
        marshal_date(DATE, text)


def test_unmarshal_date_short_data():
    with pytest.raises(UnmarshalError):
        unmarshal_date(DATE, b"\x80\x00")


# duration


@pytest.mark.parametrize(
    "data, value",
    [
        (b"\x89\xa2\xc3\xc2\x9a\xe0F\x91\x06", Duration(months=1233, days=123213, nanoseconds=2312323)),
        (b"\x89\xa1\xc3\xc2\x99\xe0F\x91\x05", Duration(months=-1233, days=-123213, nanoseconds=-2312323)),
        (b"\x02\x04\x80\xe6", Duration(months=1, days=2, nanoseconds=115)),
    ],
)
def test_duration_vectors(data, value):
    assert marshal_duration(DURATION, value) == data
    assert unmarshal_duration(DURATION, data) == value


@pytest.mark.parametrize(
    "value",
    [
        4210 * 10**9,
        datetime.timedelta(hours=1, minutes=10, seconds=10),
        "1h10m10s",
        Duration(nanoseconds=4210 * 10**9),
    ],
)
def test_marshal_duration_forms(value):
    assert marshal_duration(DURATION, value) == b"\x00\x00" + enc_vint(4210 * 10**9)


def test_marshal_duration_string_units():
    assert marshal_duration(DURATION, "1.5h") == marshal_duration(DURATION, 5400 * 10**9)
    assert marshal_duration(DURATION, "-1ms") == marshal_duration(DURATION, -(10**6))
    assert marshal_duration(DURATION, "0") == b"\x00\x00\x00"


@pytest.mark.parametrize("text", ["", "1x", "h", "10", "1h-"])
def test_marshal_duration_invalid_string(text):
    with pytest.raises(MarshalError):
        marshal_duration(DURATION, text)


def test_unmarshal_duration_empty_and_null():
    assert unmarshal_duration(DURATION, b"") == Duration(0, 0, 0)
    assert unmarshal_duration(DURATION, None) is None


# uuid


def test_uuid_round_trip():
    value = uuid.UUID(bytes=UUID_BYTES)
    assert marshal_uuid(TIMEUUID, value) == UUID_BYTES
    assert unmarshal_timeuuid(TIMEUUID, UUID_BYTES) == value
    assert unmarshal_uuid(UUID_TYPE, UUID_BYTES) == value


def test_marshal_uuid_from_string():
    value = uuid.UUID(bytes=UUID_BYTES)
    assert marshal_uuid(UUID_TYPE, str(value)) == UUID_BYTES


def test_marshal_uuid_wrong_length():
    with pytest.raises(MarshalError) as err:
        marshal_uuid(TIMEUUID, bytes([0xB8, 0xE8, 0x56, 0x2C, 0xC, 0xD0]))
    assert str(err.value) == (
        "can not marshal bytes 6 bytes long into timeuuid, must be exactly 16 bytes long"
    )


def test_unmarshal_uuid_wrong_length():
    with pytest.raises(UnmarshalError) as err:
        unmarshal_timeuuid(TIMEUUID, bytes([0xB8, 0xE8, 0x56, 0x2C, 0xC, 0xD0]))
    assert str(err.value) == "Unable to parse UUID: UUIDs must be exactly 16 bytes long"


def test_uuid_null():
    assert marshal_uuid(UUID_TYPE, None) is None
    assert unmarshal_uuid(UUID_TYPE, None) is None
    assert unmarshal_uuid(UUID_TYPE, b"") is None


# inet


@pytest.mark.parametrize(
    "data, text",
    [
        (b"\x7f\x00\x00\x01", "127.0.0.1"),
        (b"\xff\xff\xff\xff", "255.255.255.255"),
        (b"\x21\xda\x00\xd3\x00\x00\x2f\x3b\x02\xaa\x00\xff\xfe\x28\x9c\x5a", "21da:d3:0:2f3b:2aa:ff:fe28:9c5a"),
        (b"\xfe\x80\x00\x00\x00\x00\x00\x00\x02\x02\xb3\xff\xfe\x1e\x83\x29", "fe80::202:b3ff:fe1e:8329"),
    ],
)
def test_inet_vectors(data, text):
    assert marshal_inet(INET, text) == data
    assert marshal_inet(INET, ipaddress.ip_address(text)) == data
    assert unmarshal_inet(INET, data) == text


def test_inet_mapped_ipv4_is_four_bytes():
    assert marshal_inet(INET, "::ffff:127.0.0.1") == b"\x7f\x00\x00\x01"
    mapped = b"\x00" * 10 + b"\xff\xff\x7f\x00\x00\x01"
    assert unmarshal_inet(INET, mapped) == "127.0.0.1"


def test_inet_errors():
    with pytest.raises(MarshalError):
        marshal_inet(INET, "not an ip")
    with pytest.raises(MarshalError):
        marshal_inet(INET, 42)
    with pytest.raises(UnmarshalError):
        unmarshal_inet(INET, b"\x01\x02\x03")


def test_inet_null():
    assert marshal_inet(INET, None) is None
    assert unmarshal_inet(INET, None) is None
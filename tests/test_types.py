import datetime
import decimal
import uuid

import pytest

from cqlkit.types import (
    APACHE_CASSANDRA_TYPE_PREFIX,
    CollectionType,
    Duration,
    MarshalError,
    NativeType,
    TupleTypeInfo,
    Type,
    UDTField,
    UDTTypeInfo,
    UDTUnavailableError,
    UnmarshalError,
    apache_to_cassandra_type,
    get_apache_cassandra_type,
    get_cassandra_base_type,
    get_cassandra_type,
    python_type,
    split_composite_types,
    tuple_column_name,
    type_can_be_null,
)

INT = NativeType(Type.INT)
TEXT = NativeType(Type.TEXT)
INT_PAIR = TupleTypeInfo(Type.TUPLE, elems=(INT, INT))
LIST_OF_PAIRS = CollectionType(Type.LIST, elem=INT_PAIR)


def test_get_cassandra_type_set():
    typ = get_cassandra_type("set<text>")
    assert isinstance(typ, CollectionType)
    assert typ.type == Type.SET
    assert typ.elem == NativeType(Type.TEXT)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("set<text>", CollectionType(Type.SET, elem=TEXT)),
        ("map<text, varchar>", CollectionType(Type.MAP, key=TEXT, elem=NativeType(Type.VARCHAR))),
        ("list<int>", CollectionType(Type.LIST, elem=INT)),
        ("tuple<int, int, text>", TupleTypeInfo(Type.TUPLE, elems=(INT, INT, TEXT))),
        (
            "frozen<map<text, frozen<list<frozen<tuple<int, int>>>>>>",
            CollectionType(Type.MAP, key=TEXT, elem=LIST_OF_PAIRS),
        ),
        (
            "frozen<tuple<frozen<tuple<text, frozen<list<frozen<tuple<int, int>>>>>>, "
            "frozen<tuple<text, frozen<list<frozen<tuple<int, int>>>>>>,  "
            "frozen<map<text, frozen<list<frozen<tuple<int, int>>>>>>>>",
            TupleTypeInfo(
                Type.TUPLE,
                elems=(
                    TupleTypeInfo(Type.TUPLE, elems=(TEXT, LIST_OF_PAIRS)),
                    TupleTypeInfo(Type.TUPLE, elems=(TEXT, LIST_OF_PAIRS)),
                    CollectionType(Type.MAP, key=TEXT, elem=LIST_OF_PAIRS),
                ),
            ),
        ),
        (
            "frozen<tuple<frozen<tuple<int, int>>, int, frozen<tuple<int, int>>>>",
            TupleTypeInfo(Type.TUPLE, elems=(INT_PAIR, INT, INT_PAIR)),
        ),
        (
            "frozen<map<frozen<tuple<int, int>>, int>>",
            CollectionType(Type.MAP, key=INT_PAIR, elem=INT),
        ),
    ],
)
def test_get_cassandra_type(name, expected):
    assert get_cassandra_type(name) == expected


def test_get_cassandra_type_bad_map_is_custom():
    assert get_cassandra_type("map<int>") == NativeType(Type.CUSTOM)


def test_get_cassandra_type_unknown_base():
    assert get_cassandra_type("something") == NativeType(Type.CUSTOM)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("AsciiType", Type.ASCII),
        ("LongType", Type.BIGINT),
        ("BytesType", Type.BLOB),
        ("BooleanType", Type.BOOLEAN),
        ("CounterColumnType", Type.COUNTER),
        ("DecimalType", Type.DECIMAL),
        ("DoubleType", Type.DOUBLE),
        ("FloatType", Type.FLOAT),
        ("Int32Type", Type.INT),
        ("DateType", Type.TIMESTAMP),
        ("TimestampType", Type.TIMESTAMP),
        ("UUIDType", Type.UUID),
        ("UTF8Type", Type.VARCHAR),
        ("IntegerType", Type.VARINT),
        ("TimeUUIDType", Type.TIMEUUID),
        ("InetAddressType", Type.INET),
        ("MapType", Type.MAP),
        ("ListType", Type.LIST),
        ("SetType", Type.SET),
        ("unknown", Type.CUSTOM),
        ("ShortType", Type.SMALLINT),
        ("ByteType", Type.TINYINT),
    ],
)
def test_lookup_cass_type(name, expected):
    assert get_apache_cassandra_type(APACHE_CASSANDRA_TYPE_PREFIX + name) == expected


def test_lookup_without_prefix():
    assert get_apache_cassandra_type("DurationType") == Type.DURATION


def test_base_type_lookup():
    assert get_cassandra_base_type("bigint") == Type.BIGINT
    assert get_cassandra_base_type("smallint") == Type.CUSTOM


def test_split_composite_types():
    assert split_composite_types("int, text") == ["int", "text"]
    assert split_composite_types("frozen<tuple<int, int>>, int") == ["frozen<tuple<int, int>>", "int"]


def test_apache_to_cassandra_type():
    name = (
        APACHE_CASSANDRA_TYPE_PREFIX
        + "MapType("
        + APACHE_CASSANDRA_TYPE_PREFIX
        + "UTF8Type,"
        + APACHE_CASSANDRA_TYPE_PREFIX
        + "Int32Type)"
    )
    assert apache_to_cassandra_type(name) == "map<varchar, int>"


def test_type_names():
    assert str(get_cassandra_base_type("varchar")) == "varchar"
    assert str(get_apache_cassandra_type("TupleType")) == "tuple"
    assert str(UDTTypeInfo(Type.UDT).type) == "unknown_type_48"
    assert f"{get_cassandra_base_type('bigint')}" == "bigint"


def test_type_info_strings():
    assert str(NativeType(Type.INT)) == "int"
    assert str(NativeType(Type.CUSTOM, custom="a.B")) == "custom(a.B)"
    assert str(CollectionType(Type.MAP, key=TEXT, elem=INT)) == "map(text, int)"
    assert str(CollectionType(Type.LIST, elem=INT)) == "list(int)"
    assert str(INT_PAIR) == "tuple(int, int)"
    udt = UDTTypeInfo(
        Type.UDT,
        keyspace="ks",
        name="addr",
        elements=[UDTField("street", TEXT), UDTField("number", INT)],
    )
    assert str(udt) == "ks.addr{street=text,number=int}"


def test_python_type():
    assert python_type(TEXT) is str
    assert python_type(NativeType(Type.INET)) is str
    assert python_type(NativeType(Type.BIGINT)) is int
    assert python_type(NativeType(Type.TIMESTAMP)) is datetime.datetime
    assert python_type(NativeType(Type.DECIMAL)) is decimal.Decimal
    assert python_type(NativeType(Type.TIMEUUID)) is uuid.UUID
    assert python_type(CollectionType(Type.SET, elem=INT)) is list
    assert python_type(CollectionType(Type.MAP, key=TEXT, elem=INT)) is dict
    assert python_type(INT_PAIR) is tuple
    assert python_type(NativeType(Type.DURATION)) is Duration
    assert python_type(NativeType(Type.CUSTOM)) is None


def test_type_can_be_null():
    assert type_can_be_null(INT) is True
    assert type_can_be_null(CollectionType(Type.LIST, elem=INT)) is False
    assert type_can_be_null(INT_PAIR) is False
    assert type_can_be_null(UDTTypeInfo(Type.UDT)) is False


def test_tuple_column_name():
    assert tuple_column_name("coord", 1) == "coord[1]"


def test_udt_unavailable_error():
    err = UDTUnavailableError()
    assert isinstance(err, MarshalError)
    assert isinstance(err, UnmarshalError)
    assert "protocols less than 3" in str(err)
    with pytest.raises(MarshalError):
        raise err


def test_duration_defaults_and_equality():
    assert Duration() == Duration(0, 0, 0)
    assert Duration(1, 2, 115).nanoseconds == 115


def test_tuple_elems_normalised_to_tuple():
    info = TupleTypeInfo(Type.TUPLE, elems=[INT, TEXT])
    assert info.elems == (INT, TEXT)
    assert info == TupleTypeInfo(Type.TUPLE, elems=(INT, TEXT))
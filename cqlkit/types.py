"""CQL type descriptions and parsing of type names reported by Cassandra."""

from __future__ import annotations

import datetime
import decimal
import enum
import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Optional, Protocol, Union, runtime_checkable

log = logging.getLogger(__name__)

APACHE_CASSANDRA_TYPE_PREFIX = "org.apache.cassandra.db.marshal."


class Type(enum.IntEnum):
    """Identifier of a Cassandra internal data type."""

    CUSTOM = 0x0000
    ASCII = 0x0001
    BIGINT = 0x0002
    BLOB = 0x0003
    BOOLEAN = 0x0004
    COUNTER = 0x0005
    DECIMAL = 0x0006
    DOUBLE = 0x0007
    FLOAT = 0x0008
    INT = 0x0009
    TEXT = 0x000A
    TIMESTAMP = 0x000B
    UUID = 0x000C
    VARCHAR = 0x000D
    VARINT = 0x000E
    TIMEUUID = 0x000F
    INET = 0x0010
    DATE = 0x0011
    TIME = 0x0012
    SMALLINT = 0x0013
    TINYINT = 0x0014
    DURATION = 0x0015
    LIST = 0x0020
    MAP = 0x0021
    SET = 0x0022
    UDT = 0x0030
    TUPLE = 0x0031

    def __str__(self) -> str:
        name = _TYPE_NAMES.get(self)
        if name is None:
            return f"unknown_type_{int(self)}"
        return name

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


# UDT deliberately has no name here; it is reported as an unknown type.
_TYPE_NAMES = {
    Type.CUSTOM: "custom",
    Type.ASCII: "ascii",
    Type.BIGINT: "bigint",
    Type.BLOB: "blob",
    Type.BOOLEAN: "boolean",
    Type.COUNTER: "counter",
    Type.DECIMAL: "decimal",
    Type.DOUBLE: "double",
    Type.FLOAT: "float",
    Type.INT: "int",
    Type.TEXT: "text",
    Type.TIMESTAMP: "timestamp",
    Type.UUID: "uuid",
    Type.VARCHAR: "varchar",
    Type.TIMEUUID: "timeuuid",
    Type.INET: "inet",
    Type.DATE: "date",
    Type.DURATION: "duration",
    Type.TIME: "time",
    Type.SMALLINT: "smallint",
    Type.TINYINT: "tinyint",
    Type.LIST: "list",
    Type.MAP: "map",
    Type.SET: "set",
    Type.VARINT: "varint",
    Type.TUPLE: "tuple",
}


@dataclass(frozen=True)
class NativeType:
    """A simple CQL type; ``custom`` names the class of a custom type."""

    type: Type
    proto: int = 0
    custom: str = ""

    def __str__(self) -> str:
        if self.type == Type.CUSTOM:
            return f"{self.type}({self.custom})"
        return str(self.type)


@dataclass(frozen=True)
class CollectionType(NativeType):
    """A list, set or map; ``key`` is used by maps only."""

    key: Optional[TypeInfo] = None
    elem: Optional[TypeInfo] = None

    def __str__(self) -> str:
        if self.type == Type.MAP:
            return f"{self.type}({self.key}, {self.elem})"
        if self.type in (Type.LIST, Type.SET):
            return f"{self.type}({self.elem})"
        if self.type == Type.CUSTOM:
            return f"{self.type}({self.custom})"
        return str(self.type)


@dataclass(frozen=True)
class TupleTypeInfo(NativeType):
    """A tuple of element types."""

    elems: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "elems", tuple(self.elems))

    def __str__(self) -> str:
        return f"{self.type}({', '.join(str(e) for e in self.elems)})"


@dataclass(frozen=True)
class UDTField:
    name: str
    type: TypeInfo


@dataclass(frozen=True)
class UDTTypeInfo(NativeType):
    """A user defined type with its ordered fields."""

    keyspace: str = ""
    name: str = ""
    elements: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))

    def __str__(self) -> str:
        fields = ",".join(f"{e.name}={e.type}" for e in self.elements)
        return f"{self.keyspace}.{self.name}{{{fields}}}"


TypeInfo = Union[NativeType, CollectionType, TupleTypeInfo, UDTTypeInfo]


@dataclass(frozen=True)
class Duration:
    """A CQL duration: months, days and nanoseconds kept apart."""

    months: int = 0
    days: int = 0
    nanoseconds: int = 0


@runtime_checkable
class Marshaler(Protocol):
    """A value that encodes itself into CQL bytes."""

    def marshal_cql(self, info: TypeInfo) -> Optional[bytes]:
        ...


@runtime_checkable
class Unmarshaler(Protocol):
    """A value that decodes itself from CQL bytes."""

    def unmarshal_cql(self, info: TypeInfo, data: Optional[bytes]) -> None:
        ...


class MarshalError(Exception):
    """A value cannot be encoded as the requested CQL type."""


class UnmarshalError(Exception):
    """CQL bytes cannot be decoded into the requested value."""


class UDTUnavailableError(MarshalError, UnmarshalError):
    """User defined types need protocol version 3 or later."""

    def __init__(self, message: str = "UDT are not available on protocols less than 3, please update config"):
        super().__init__(message)


def python_type(info: TypeInfo) -> Optional[type]:
    """Python type a value of ``info`` decodes to, or None if there is none."""
    t = info.type
    if t in (Type.VARCHAR, Type.ASCII, Type.INET, Type.TEXT):
        return str
    if t in (Type.BIGINT, Type.COUNTER, Type.INT, Type.SMALLINT, Type.TINYINT, Type.VARINT):
        return int
    if t in (Type.TIMESTAMP, Type.DATE):
        return datetime.datetime
    if t == Type.BLOB:
        return bytes
    if t == Type.BOOLEAN:
        return bool
    if t in (Type.FLOAT, Type.DOUBLE):
        return float
    if t == Type.DECIMAL:
        return decimal.Decimal
    if t in (Type.UUID, Type.TIMEUUID):
        return uuid.UUID
    if t in (Type.LIST, Type.SET):
        return list
    if t == Type.MAP:
        return dict
    if t == Type.TUPLE:
        return tuple
    if t == Type.UDT:
        return dict
    if t == Type.DURATION:
        return Duration
    return None


_BASE_TYPES = {
    "ascii": Type.ASCII,
    "bigint": Type.BIGINT,
    "blob": Type.BLOB,
    "boolean": Type.BOOLEAN,
    "counter": Type.COUNTER,
    "decimal": Type.DECIMAL,
    "double": Type.DOUBLE,
    "float": Type.FLOAT,
    "int": Type.INT,
    "tinyint": Type.TINYINT,
    "timestamp": Type.TIMESTAMP,
    "uuid": Type.UUID,
    "varchar": Type.VARCHAR,
    "text": Type.TEXT,
    "varint": Type.VARINT,
    "timeuuid": Type.TIMEUUID,
    "inet": Type.INET,
    "MapType": Type.MAP,
    "ListType": Type.LIST,
    "SetType": Type.SET,
    "TupleType": Type.TUPLE,
}


def get_cassandra_base_type(name: str) -> Type:
    """Type for a simple CQL type name; unknown names are custom."""
    return _BASE_TYPES.get(name, Type.CUSTOM)


def _inner(name: str, prefix: str) -> str:
    return name[:-1][len(prefix):]


def get_cassandra_type(name: str) -> TypeInfo:
    """Parse a CQL type name such as ``map<text, frozen<list<int>>>``."""
    if name.startswith("frozen<"):
        return get_cassandra_type(_inner(name, "frozen<"))
    if name.startswith("set<"):
        return CollectionType(Type.SET, elem=get_cassandra_type(_inner(name, "set<")))
    if name.startswith("list<"):
        return CollectionType(Type.LIST, elem=get_cassandra_type(_inner(name, "list<")))
    if name.startswith("map<"):
        names = split_composite_types(_inner(name, "map<"))
        if len(names) != 2:
            log.warning("Error parsing map type, it has %d subelements, expecting 2", len(names))
            return NativeType(Type.CUSTOM)
        return CollectionType(
            Type.MAP,
            key=get_cassandra_type(names[0]),
            elem=get_cassandra_type(names[1]),
        )
    if name.startswith("tuple<"):
        names = split_composite_types(_inner(name, "tuple<"))
        return TupleTypeInfo(Type.TUPLE, elems=tuple(get_cassandra_type(n) for n in names))
    return NativeType(get_cassandra_base_type(name))


def split_composite_types(name: str) -> list[str]:
    """Split the top-level comma separated parts of a type parameter list."""
    if "<" not in name:
        return name.split(", ")
    parts: list[str] = []
    depth = 0
    segment = ""
    for char in name:
        if char == "," and depth == 0:
            if segment:
                parts.append(segment.strip())
            segment = ""
            continue
        segment += char
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
    if segment:
        parts.append(segment.strip())
    return parts


def apache_to_cassandra_type(name: str) -> str:
    """Turn a marshal class description into the CQL type name Cassandra shows."""
    t = name.replace(APACHE_CASSANDRA_TYPE_PREFIX, "")
    t = t.replace("(", "<").replace(")", ">")
    for typ in (part for part in re.split(r"[<>,]", t) if part):
        t = t.replace(typ, str(get_apache_cassandra_type(typ)))
    return t.replace(",", ", ")


_APACHE_TYPES = {
    "AsciiType": Type.ASCII,
    "LongType": Type.BIGINT,
    "BytesType": Type.BLOB,
    "BooleanType": Type.BOOLEAN,
    "CounterColumnType": Type.COUNTER,
    "DecimalType": Type.DECIMAL,
    "DoubleType": Type.DOUBLE,
    "FloatType": Type.FLOAT,
    "Int32Type": Type.INT,
    "ShortType": Type.SMALLINT,
    "ByteType": Type.TINYINT,
    "DateType": Type.TIMESTAMP,
    "TimestampType": Type.TIMESTAMP,
    "UUIDType": Type.UUID,
    "LexicalUUIDType": Type.UUID,
    "UTF8Type": Type.VARCHAR,
    "IntegerType": Type.VARINT,
    "TimeUUIDType": Type.TIMEUUID,
    "InetAddressType": Type.INET,
    "MapType": Type.MAP,
    "ListType": Type.LIST,
    "SetType": Type.SET,
    "TupleType": Type.TUPLE,
    "DurationType": Type.DURATION,
}


def get_apache_cassandra_type(class_name: str) -> Type:
    """Type for a marshal class name, with or without its package prefix."""
    short = class_name[len(APACHE_CASSANDRA_TYPE_PREFIX):] if class_name.startswith(
        APACHE_CASSANDRA_TYPE_PREFIX
    ) else class_name
    return _APACHE_TYPES.get(short, Type.CUSTOM)


def type_can_be_null(info: TypeInfo) -> bool:
    """Whether a column of this type can hold a null value."""
    return not isinstance(info, (CollectionType, UDTTypeInfo, TupleTypeInfo))


def tuple_column_name(column: str, n: int) -> str:
    """Name under which element ``n`` of tuple column ``column`` is reported."""
    return f"{column}[{n}]"
"""Encoding and decoding of CQL values of any type, collections included."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Sequence, Set
from typing import Any, Callable, Optional

from cqlkit.encoding import (
    append_bytes,
    enc_int,
    read_bytes,
    read_collection_size,
    write_collection_size,
)
from cqlkit.numeric import (
    marshal_bigint,
    marshal_bool,
    marshal_decimal,
    marshal_double,
    marshal_float,
    marshal_int,
    marshal_smallint,
    marshal_tinyint,
    marshal_varint,
    unmarshal_bigint,
    unmarshal_bool,
    unmarshal_decimal,
    unmarshal_double,
    unmarshal_float,
    unmarshal_int,
    unmarshal_smallint,
    unmarshal_tinyint,
    unmarshal_varint,
)
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
from cqlkit.types import (
    CollectionType,
    Marshaler,
    MarshalError,
    TupleTypeInfo,
    Type,
    TypeInfo,
    UDTTypeInfo,
    UDTUnavailableError,
    UnmarshalError,
)

_USER_TYPE_PREFIX = "org.apache.cassandra.db.marshal.UserType"
_BYTES_LIKE = (str, bytes, bytearray, memoryview)


def _type_name(value: Any) -> str:
    return type(value).__name__


def _is_protocol2_udt(info: TypeInfo) -> bool:
    return info.custom.startswith(_USER_TYPE_PREFIX) and info.proto < 3


def _is_dataclass_instance(value: Any) -> bool:
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def marshal(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Return the CQL encoding of ``value`` as the type ``info``; None means null."""
    if info.proto < 1:
        raise ValueError("protocol version not set")
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)
    encoder = _MARSHALERS.get(info.type)
    if encoder is not None:
        return encoder(info, value)
    if _is_protocol2_udt(info):
        raise UDTUnavailableError()
    raise MarshalError(f"can not marshal {_type_name(value)} into {info}")


def unmarshal(info: TypeInfo, data: Optional[bytes]) -> Any:
    """Decode the CQL encoded ``data`` of type ``info``; null decodes to None."""
    decoder = _UNMARSHALERS.get(info.type)
    if decoder is not None:
        return decoder(info, data)
    if _is_protocol2_udt(info):
        raise UDTUnavailableError()
    raise UnmarshalError(f"can not unmarshal {info}")


def _read_element(proto: int, data: bytes, eof_message: str) -> tuple[bytes, bytes]:
    if len(data) < 2:
        raise UnmarshalError(eof_message)
    size, used = read_collection_size(proto, data)
    data = data[used:]
    if len(data) < size:
        raise UnmarshalError(eof_message)
    return data[:size], data[size:]


def _encode_element(proto: int, info: TypeInfo, value: Any) -> bytes:
    # A null element is written with a zero length.
    data = marshal(info, value) or b""
    return write_collection_size(proto, len(data)) + data


def marshal_list(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a sequence or set as a CQL list or set."""
    if not isinstance(info, CollectionType):
        raise MarshalError("marshal: can not marshal non collection type into list")
    if value is None:
        return None
    if isinstance(value, _BYTES_LIKE) or not isinstance(value, (Sequence, Set)):
        raise MarshalError(f"can not marshal {_type_name(value)} into {info}")
    items = list(value)
    parts = [write_collection_size(info.proto, len(items))]
    parts.extend(_encode_element(info.proto, info.elem, item) for item in items)
    return b"".join(parts)


def unmarshal_list(info: TypeInfo, data: Optional[bytes]) -> Optional[list]:
    """Decode a CQL list or set into a list; null decodes to None."""
    if not isinstance(info, CollectionType):
        raise UnmarshalError("unmarshal: can not unmarshal none collection type into list")
    if data is None:
        return None
    data = bytes(data)
    eof = "unmarshal list: unexpected eof"
    if len(data) < 2:
        raise UnmarshalError(eof)
    count, used = read_collection_size(info.proto, data)
    data = data[used:]
    result = []
    for _ in range(count):
        chunk, data = _read_element(info.proto, data, eof)
        result.append(unmarshal(info.elem, chunk))
    return result


def marshal_map(info: TypeInfo, value: Any) -> Optional[bytes]:
    """Encode a mapping as a CQL map."""
    if not isinstance(info, CollectionType):
        raise MarshalError("marshal: can not marshal none collection type into map")
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise MarshalError(f"can not marshal {_type_name(value)} into {info}")
    parts = [write_collection_size(info.proto, len(value))]
    for key, item in value.items():
        parts.append(_encode_element(info.proto, info.key, key))
        parts.append(_encode_element(info.proto, info.elem, item))
    return b"".join(parts)


def unmarshal_map(info: TypeInfo, data: Optional[bytes]) -> Optional[dict]:
    """Decode a CQL map into a dict; null decodes to None."""
    if not isinstance(info, CollectionType):
        raise UnmarshalError("unmarshal: can not unmarshal none collection type into map")
    if data is None:
        return None
    data = bytes(data)
    if len(data) < 2:
        raise UnmarshalError("unmarshal map: unexpected eof")
    count, used = read_collection_size(info.proto, data)
    data = data[used:]
    eof = "unmarshal list: unexpected eof"
    result = {}
    for _ in range(count):
        key_data, data = _read_element(info.proto, data, eof)
        value_data, data = _read_element(info.proto, data, eof)
        result[unmarshal(info.key, key_data)] = unmarshal(info.elem, value_data)
    return result


def _tuple_values(info: TupleTypeInfo, value: Any) -> list:
    needed = len(info.elems)
    if _is_dataclass_instance(value):
        values = [getattr(value, f.name) for f in dataclasses.fields(value)]
        if len(values) != needed:
            raise MarshalError(
                f"can not marshal tuple into {_type_name(value)}, "
                f"not enough fields have {len(values)} need {needed}"
            )
        return values
    if isinstance(value, Sequence) and not isinstance(value, _BYTES_LIKE):
        values = list(value)
        if len(values) != needed:
            raise MarshalError("cannot marshal tuple: wrong number of elements")
        return values
    raise MarshalError(f"cannot marshal {_type_name(value)} into {info}")


def marshal_tuple(info: TypeInfo, value: Any) -> bytes:
    """Encode a sequence or dataclass as a CQL tuple; null elements are written empty."""
    if not isinstance(info, TupleTypeInfo):
        raise MarshalError(f"cannot marshal {_type_name(value)} into {info}")
    parts = []
    for elem, item in zip(info.elems, _tuple_values(info, value)):
        data = marshal(elem, item) or b""
        parts.append(enc_int(len(data)) + data)
    return b"".join(parts)


def unmarshal_tuple(info: TypeInfo, data: Optional[bytes]) -> Optional[tuple]:
    """Decode a CQL tuple into a tuple of values; null decodes to None."""
    if not isinstance(info, TupleTypeInfo):
        raise UnmarshalError(f"cannot unmarshal {info} into tuple")
    if data is None:
        return None
    data = bytes(data)
    values = []
    for elem in info.elems:
        chunk, data = read_bytes(data)
        values.append(unmarshal(elem, chunk))
    return tuple(values)


def marshal_udt(info: TypeInfo, value: Any) -> bytes:
    """Encode a user defined type value.

    Accepts an object with a ``marshal_udt(name, info)`` method, a mapping
    (fields it lacks are left out) or a dataclass, whose fields match UDT
    fields by their ``cql`` metadata or else by name.
    """
    if not isinstance(info, UDTTypeInfo):
        raise MarshalError(f"cannot marshal {_type_name(value)} into {info}")
    if isinstance(value, Marshaler):
        return value.marshal_cql(info)

    marshal_field: Optional[Callable[[str, TypeInfo], Optional[bytes]]] = getattr(
        value, "marshal_udt", None
    )
    buf = b""
    if callable(marshal_field):
        for element in info.elements:
            buf = append_bytes(buf, marshal_field(element.name, element.type))
        return buf

    if isinstance(value, Mapping):
        for element in info.elements:
            if element.name not in value:
                continue
            buf = append_bytes(buf, marshal(element.type, value[element.name]))
        return buf

    if _is_dataclass_instance(value):
        tagged = {
            f.metadata["cql"]: f.name
            for f in dataclasses.fields(value)
            if f.metadata.get("cql")
        }
        for element in info.elements:
            attr = tagged.get(element.name, element.name)
            data = marshal(element.type, getattr(value, attr)) if hasattr(value, attr) else None
            buf = append_bytes(buf, data)
        return buf

    raise MarshalError(f"cannot marshal {_type_name(value)} into {info}")


def unmarshal_udt(info: TypeInfo, data: Optional[bytes]) -> Optional[dict]:
    """Decode a user defined type into a dict keyed by field name.

    Fields missing at the end of the data are left out; null decodes to None.
    """
    if not isinstance(info, UDTTypeInfo):
        raise UnmarshalError(f"cannot unmarshal {info} into dict")
    if data is None:
        return None
    data = bytes(data)
    result = {}
    for element in info.elements:
        if not data:
            break
        chunk, data = read_bytes(data)
        result[element.name] = unmarshal(element.type, chunk)
    return result


_MARSHALERS: dict[Type, Callable[[TypeInfo, Any], Optional[bytes]]] = {
    Type.VARCHAR: marshal_varchar,
    Type.ASCII: marshal_varchar,
    Type.BLOB: marshal_varchar,
    Type.TEXT: marshal_varchar,
    Type.BOOLEAN: marshal_bool,
    Type.TINYINT: marshal_tinyint,
    Type.SMALLINT: marshal_smallint,
    Type.INT: marshal_int,
    Type.BIGINT: marshal_bigint,
    Type.COUNTER: marshal_bigint,
    Type.FLOAT: marshal_float,
    Type.DOUBLE: marshal_double,
    Type.DECIMAL: marshal_decimal,
    Type.TIMESTAMP: marshal_timestamp,
    Type.TIME: marshal_timestamp,
    Type.LIST: marshal_list,
    Type.SET: marshal_list,
    Type.MAP: marshal_map,
    Type.UUID: marshal_uuid,
    Type.TIMEUUID: marshal_uuid,
    Type.VARINT: marshal_varint,
    Type.INET: marshal_inet,
    Type.TUPLE: marshal_tuple,
    Type.UDT: marshal_udt,
    Type.DATE: marshal_date,
    Type.DURATION: marshal_duration,
}

_UNMARSHALERS: dict[Type, Callable[[TypeInfo, Optional[bytes]], Any]] = {
    Type.VARCHAR: unmarshal_varchar,
    Type.ASCII: unmarshal_varchar,
    Type.BLOB: unmarshal_varchar,
    Type.TEXT: unmarshal_varchar,
    Type.BOOLEAN: unmarshal_bool,
    Type.INT: unmarshal_int,
    Type.BIGINT: unmarshal_bigint,
    Type.COUNTER: unmarshal_bigint,
    Type.VARINT: unmarshal_varint,
    Type.SMALLINT: unmarshal_smallint,
    Type.TINYINT: unmarshal_tinyint,
    Type.FLOAT: unmarshal_float,
    Type.DOUBLE: unmarshal_double,
    Type.DECIMAL: unmarshal_decimal,
    Type.TIMESTAMP: unmarshal_timestamp,
    Type.TIME: unmarshal_timestamp,
    Type.LIST: unmarshal_list,
    Type.SET: unmarshal_list,
    Type.MAP: unmarshal_map,
    Type.TIMEUUID: unmarshal_timeuuid,
    Type.UUID: unmarshal_uuid,
    Type.INET: unmarshal_inet,
    Type.TUPLE: unmarshal_tuple,
    Type.UDT: unmarshal_udt,
    Type.DATE: unmarshal_date,
    Type.DURATION: unmarshal_duration,
}
"""Conversion between XFS documents and their JSON form."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional

from xfsjson import arch_v15, arch_v16
from xfsjson.json_values import value_from_json, value_to_json
from xfsjson.model import (
    MAGIC,
    VERSION_15,
    VERSION_16,
    ClassDef,
    Field,
    Header,
    InvalidXfsError,
    PropertyDef,
    Xfs,
    XfsError,
    XfsObject,
    XfsType,
    is_unsupported_type,
)

log = logging.getLogger(__name__)

_CLASS_TYPES = (XfsType.CLASS, XfsType.CLASSREF)
_RAW_HEADER_SIZE = 16
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_MISSING = object()


def _number(node: Any) -> Optional[float]:
    if isinstance(node, bool) or not isinstance(node, (int, float)):
        return None
    return node


def _to_uint(node: Any, bits: int) -> int:
    number = _number(node)
    if number is None:
        return 0
    if isinstance(number, float):
        if not math.isfinite(number):
            return 0
        number = int(number)
    return number & ((1 << bits) - 1)


def _to_s16(number: int) -> int:
    number &= 0xFFFF
    return number - 0x10000 if number >= 0x8000 else number


def _hex_byte(pair: str) -> int:
    digits = ""
    for char in pair:
        if char not in _HEX_DIGITS:
            break
        digits += char
    return int(digits, 16) if digits else 0


def _parse_raw_header(text: Any) -> bytes:
    if not isinstance(text, str) or len(text) != 2 * _RAW_HEADER_SIZE:
        return bytes(_RAW_HEADER_SIZE)
    return bytes(_hex_byte(text[i:i + 2]) for i in range(0, len(text), 2))


def _has_json_value(field_type: int) -> bool:
    if field_type in _CLASS_TYPES:
        return True
    try:
        kind = XfsType(int(field_type))
    except ValueError:
        return False
    return kind is not XfsType.UNDEFINED and not is_unsupported_type(kind)


def _entry_to_json(field_type: int, value: Any) -> Any:
    if field_type in _CLASS_TYPES:
        return object_to_json(value)
    return value_to_json(field_type, value)


def object_to_json(obj: Optional[XfsObject]) -> Optional[Dict[str, Any]]:
    """Return the JSON form of an object; a missing object gives None."""
    if obj is None:
        return None
    result: Dict[str, Any] = {"$id": obj.def_id}
    for item in obj.fields:
        supported = _has_json_value(item.type)
        if item.is_array:
            result[item.name] = (
                [_entry_to_json(item.type, entry) for entry in (item.value or [])]
                if supported
                else []
            )
        elif supported:
            result[item.name] = _entry_to_json(item.type, item.value)
    return result


def _data_from_json(node: Any, field_type: int, xfs: Xfs) -> Any:
    if node is None:
        return None
    if field_type in _CLASS_TYPES:
        return object_from_json(node, xfs)
    return value_from_json(field_type, node)


def _field_from_json(node: Mapping[str, Any], prop: PropertyDef, xfs: Xfs) -> Field:
    item = node.get(prop.name, _MISSING)
    if item is _MISSING:
        return Field(prop.name, prop.type)
    if isinstance(item, list):
        return Field(
            prop.name,
            prop.type,
            True,
            [_data_from_json(entry, prop.type, xfs) for entry in item],
        )
    return Field(prop.name, prop.type, False, _data_from_json(item, prop.type, xfs))


def object_from_json(node: Any, xfs: Xfs) -> Optional[XfsObject]:
    """Decode an object; gives None when ``node`` is not a usable object.

    Each decoded object takes the next id from ``xfs.header.class_count``.
    """
    if not isinstance(node, dict):
        return None
    number = _number(node.get("$id"))
    if number is None:
        return None
    if isinstance(number, float) and not math.isfinite(number):
        raise XfsError(f"invalid class id: {number}")
    def_id = int(number)
    if not 0 <= def_id < len(xfs.defs):
        raise XfsError(f"class id {def_id} has no definition")
    definition = xfs.defs[def_id]

    obj_id = _to_s16(xfs.header.class_count)
    xfs.header.class_count += 1

    try:
        fields = [_field_from_json(node, prop, xfs) for prop in definition.props]
    except XfsError as exc:
        log.warning("Failed to decode object of class %d: %s", def_id, exc)
        return None
    return XfsObject(definition=definition, def_id=def_id, id=obj_id, fields=fields)


def _def_to_json(definition: ClassDef) -> Dict[str, Any]:
    raw = bytes(definition.raw_header[:_RAW_HEADER_SIZE]).ljust(_RAW_HEADER_SIZE, b"\x00")
    return {
        "dti": definition.dti_hash,
        "raw_header": raw.hex(),
        "props": [
            {
                "name": prop.name,
                "type": int(prop.type),
                "attr": prop.attr,
                "bytes": prop.bytes,
                "disable": bool(prop.disable),
            }
            for prop in definition.props
        ],
    }


def xfs_to_json(xfs: Xfs) -> Dict[str, Any]:
    """Return the JSON document for a whole XFS document."""
    return {
        "root": object_to_json(xfs.root),
        "$defs": [_def_to_json(definition) for definition in xfs.defs],
        "$major_version": xfs.header.major_version,
        "$minor_version": xfs.header.minor_version,
    }


def _prop_from_json(node: Any) -> PropertyDef:
    if not isinstance(node, dict):
        raise XfsError("property definition must be an object")
    name = node.get("name")
    if not isinstance(name, str):
        raise XfsError("property definition needs a string 'name'")
    return PropertyDef(
        name=name,
        type=_to_uint(node.get("type"), 32),
        attr=_to_uint(node.get("attr"), 8),
        bytes=_to_uint(node.get("bytes"), 16),
        disable=node.get("disable") is True,
    )


def _def_from_json(node: Any) -> ClassDef:
    if not isinstance(node, dict):
        raise XfsError("class definition must be an object")
    props = node.get("props")
    if not isinstance(props, list):
        raise XfsError("class definition needs a 'props' array")
    return ClassDef(
        dti_hash=_to_uint(node.get("dti"), 32),
        init=node.get("init") is True,
        raw_header=_parse_raw_header(node.get("raw_header")),
        props=[_prop_from_json(prop) for prop in props],
    )


def xfs_from_json(document: Any) -> Xfs:
    """Build an XFS document from its JSON form."""
    if not isinstance(document, dict):
        raise XfsError("JSON document must be an object")
    if "$defs" not in document or "root" not in document:
        raise XfsError("JSON document needs '$defs' and 'root'")
    defs_node = document["$defs"]
    if not isinstance(defs_node, list):
        raise XfsError("'$defs' must be an array")

    defs: List[ClassDef] = [_def_from_json(node) for node in defs_node]
    header = Header(
        magic=MAGIC,
        major_version=_to_uint(document.get("$major_version"), 16),
        minor_version=_to_uint(document.get("$minor_version"), 16),
        class_count=0,
        def_count=len(defs),
    )

    if header.major_version == VERSION_15:
        header.def_size = arch_v15.get_def_size(defs, True)
    elif header.major_version == VERSION_16:
        header.def_size = arch_v16.get_def_size(defs, True)
    else:
        raise InvalidXfsError(
            f"Unsupported XFS version: {header.major_version:04X}-{header.minor_version:04X}"
        )

    xfs = Xfs(header=header, defs=defs)
    xfs.root = object_from_json(document["root"], xfs)
    return xfs
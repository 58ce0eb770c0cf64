"""Definition block of version 16 files (32-bit layout)."""

from __future__ import annotations

import struct
from typing import List, Sequence, Union

from xfsjson.binary import BinaryWriter
from xfsjson.model import ClassDef, InvalidXfsError, PropertyDef

_OFFSET = struct.Struct("<I")
_DEF = struct.Struct("<II")  # dti_hash, prop_count:15 plus reserved bits
_PROP = struct.Struct("<IBBH32x")  # name_offset, type, attr, bytes|disable
_RAW_HEADER_SIZE = 8


def _encode(name: str) -> bytes:
    return name.encode("utf-8", "surrogateescape")


def _read_name(data: bytes, offset: int) -> str:
    end = data.find(b"\x00", offset)
    if offset >= len(data) or end < 0:
        raise InvalidXfsError(f"property name at offset {offset} is out of bounds")
    return data[offset:end].decode("utf-8", "surrogateescape")


def _load_prop(data: bytes, offset: int) -> PropertyDef:
    try:
        name_offset, xfs_type, attr, packed = _PROP.unpack_from(data, offset)
    except struct.error as exc:
        raise InvalidXfsError(
            f"property definition at offset {offset} is out of bounds"
        ) from exc
    return PropertyDef(
        name=_read_name(data, name_offset),
        type=xfs_type,
        attr=attr,
        bytes=packed & 0x7FFF,
        disable=bool(packed >> 15),
    )


def _load_def(data: bytes, offset: int) -> ClassDef:
    try:
        dti_hash, flags = _DEF.unpack_from(data, offset)
    except struct.error as exc:
        raise InvalidXfsError(
            f"class definition at offset {offset} is out of bounds"
        ) from exc
    prop_count = flags & 0x7FFF
    first_prop = offset + _DEF.size
    raw = data[offset:offset + _RAW_HEADER_SIZE] + bytes(16 - _RAW_HEADER_SIZE)
    return ClassDef(
        dti_hash=dti_hash,
        init=False,
        raw_header=raw,
        props=[
            _load_prop(data, first_prop + index * _PROP.size)
            for index in range(prop_count)
        ],
    )


def load_defs(buffer: Union[bytes, bytearray, memoryview], def_count: int) -> List[ClassDef]:
    """Decode ``def_count`` class definitions from a definition block."""
    data = bytes(buffer)
    if def_count < 0 or len(data) < 4 * def_count:
        raise InvalidXfsError("Invalid XFS definition size")
    offsets = struct.unpack_from(f"<{def_count}I", data)
    return [_load_def(data, offset) if offset else ClassDef() for offset in offsets]


def get_def_size(defs: Sequence[ClassDef], include_strings: bool) -> int:
    """Size of the definition block, optionally with its name strings."""
    size = (_OFFSET.size + _DEF.size) * len(defs)
    size += sum(_PROP.size * len(d.props) for d in defs)
    if not include_strings:
        return size
    size += sum(len(_encode(p.name)) + 1 for d in defs for p in d.props)
    return (size + 3) & ~3


def save_defs(defs: Sequence[ClassDef], def_size: int) -> bytes:
    """Encode class definitions into a block of exactly ``def_size`` bytes."""
    writer = BinaryWriter(def_size)
    for _ in defs:
        writer.write_u32(0)

    string_offset = get_def_size(defs, False)
    for index, definition in enumerate(defs):
        writer.set_u32(index * _OFFSET.size, writer.tell())
        writer.write(bytes(definition.raw_header[:_RAW_HEADER_SIZE]).ljust(_RAW_HEADER_SIZE, b"\x00"))
        for prop in definition.props:
            packed = (prop.bytes & 0xFFFF) | (int(bool(prop.disable)) << 15)
            writer.write(_PROP.pack(string_offset, prop.type & 0xFF, prop.attr & 0xFF, packed))
            name = _encode(prop.name) + b"\x00"
            writer.write_at(string_offset, name)
            string_offset += len(name)

    return writer.getvalue()
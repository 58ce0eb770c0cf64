"""Reading and writing whole XFS documents."""

from __future__ import annotations

import logging
import os
import struct
from pathlib import Path
from typing import Any, Optional, Union

from xfsjson import arch_v15, arch_v16
from xfsjson.binary import BinaryReadError, BinaryReader, BinaryWriter
from xfsjson.model import (
    HEADER_SIZE,
    MAGIC,
    VERSION_15,
    VERSION_16,
    Field,
    Header,
    InvalidXfsError,
    PropertyDef,
    Structure,
    Xfs,
    XfsError,
    XfsObject,
    XfsType,
)
from xfsjson.values import read_value, write_value

log = logging.getLogger(__name__)

_CLASS_TYPES = (XfsType.CLASS, XfsType.CLASSREF)
_NULL_DEF_ID = 0x7FFF
_HYBRID_MAX_PROPS = 1000

PathLike = Union[str, os.PathLike]


def _u32_at(data: bytes, offset: int) -> Optional[int]:
    if offset < 0 or offset + 4 > len(data):
        return None
    return struct.unpack_from("<I", data, offset)[0]


def detect_hybrid_structure(data: Union[bytes, bytearray, memoryview], header: Header) -> bool:
    """Return True when a version 15 file stores its definitions in the v16 layout."""
    if header.major_version != VERSION_15 or header.def_count <= 0:
        return False
    data = bytes(data)
    count = header.def_count * 2
    if len(data) < HEADER_SIZE + 4 * count:
        return False

    offsets = struct.unpack_from(f"<{count}I", data, HEADER_SIZE)
    # In the hybrid layout every 64-bit slot holds a 32-bit offset and zero padding.
    for low, high in zip(offsets[0::2], offsets[1::2]):
        if high != 0:
            return False
        if low > 0 and low >= header.def_size:
            return False

    first = offsets[0]
    if first == 0:
        return False
    base = HEADER_SIZE + first
    flags = _u32_at(data, base + 4)
    if flags is None:
        return False
    prop_count = flags & 0x7FFF
    if not 0 < prop_count < _HYBRID_MAX_PROPS:
        return False
    name_offset = _u32_at(data, base + 8)
    return name_offset is not None and 0 < name_offset < header.def_size


def _load_value(xfs: Xfs, reader: BinaryReader, prop_type: int) -> Any:
    if prop_type in _CLASS_TYPES:
        try:
            return _load_object(xfs, reader)
        except XfsError as exc:
            log.warning("Failed to load nested object: %s", exc)
            return None
    return read_value(reader, prop_type)


def _load_field(xfs: Xfs, reader: BinaryReader, prop: PropertyDef) -> Field:
    count = reader.read_u32()
    if count == 1:
        return Field(prop.name, prop.type, False, _load_value(xfs, reader, prop.type))
    return Field(
        prop.name,
        prop.type,
        True,
        [_load_value(xfs, reader, prop.type) for _ in range(count)],
    )


def _load_object(xfs: Xfs, reader: BinaryReader) -> Optional[XfsObject]:
    try:
        class_id = reader.read_u16()
        var = reader.read_s16()
    except BinaryReadError as exc:
        raise XfsError("Failed to read XFS class reference") from exc

    def_id = class_id >> 1
    if def_id == _NULL_DEF_ID or not class_id & 1:
        return None
    if def_id >= len(xfs.defs):
        raise InvalidXfsError(f"class reference {def_id} has no definition")
    definition = xfs.defs[def_id]

    try:
        size = reader.read_u32()
    except BinaryReadError as exc:
        raise XfsError("Failed to read XFS object size") from exc
    start = reader.tell()

    try:
        if xfs.header.major_version == VERSION_15:
            reader.read_u32()
        fields = [_load_field(xfs, reader, prop) for prop in definition.props]
    except (XfsError, BinaryReadError, ValueError) as exc:
        reader.seek(start + size)
        raise XfsError(f"Failed to load object of class {def_id}: {exc}") from exc

    return XfsObject(definition=definition, def_id=def_id, id=var, fields=fields)


def parse(data: Union[bytes, bytearray, memoryview]) -> Xfs:
    """Decode a whole XFS document."""
    data = bytes(data)
    header = Header.unpack(data)
    if header.magic != MAGIC:
        raise InvalidXfsError(f"Invalid XFS file: bad magic {header.magic:#x}")

    if header.major_version == VERSION_15:
        if detect_hybrid_structure(data, header):
            log.info("Detected hybrid v15/v16 structure")
            structure, arch = Structure.V16_HYBRID, arch_v16
        else:
            structure, arch = Structure.V15_64BIT, arch_v15
    elif header.major_version == VERSION_16:
        structure, arch = Structure.V16_32BIT, arch_v16
    else:
        raise InvalidXfsError(
            f"Unsupported XFS version: {header.major_version:04X}-{header.minor_version:04X}"
        )

    if header.def_size < 0:
        raise XfsError("Invalid XFS definition size")
    end = HEADER_SIZE + header.def_size
    if len(data) < end:
        raise XfsError("Failed to read XFS definitions")
    defs = arch.load_defs(data[HEADER_SIZE:end], header.def_count)

    xfs = Xfs(header=header, defs=defs, structure=structure)
    reader = BinaryReader(data)
    reader.seek(end)
    try:
        root = _load_object(xfs, reader)
    except XfsError as exc:
        raise XfsError(f"Failed to load root object: {exc}") from exc
    if root is None:
        raise XfsError("Failed to load root object")
    xfs.root = root
    return xfs


def _arch_for_save(xfs: Xfs):
    if xfs.structure == Structure.V15_64BIT:
        return arch_v15
    if xfs.structure in (Structure.V16_32BIT, Structure.V16_HYBRID):
        return arch_v16
    if xfs.header.major_version == VERSION_15:
        return arch_v15
    if xfs.header.major_version == VERSION_16:
        return arch_v16
    raise InvalidXfsError(
        f"Unsupported XFS version: {xfs.header.major_version:04X}-{xfs.header.minor_version:04X}"
    )


def _save_value(xfs: Xfs, writer: BinaryWriter, field_type: int, value: Any) -> None:
    if field_type in _CLASS_TYPES:
        if value is not None:
            _save_object(xfs, value, writer)
        return
    write_value(writer, field_type, value)


def _save_object(xfs: Xfs, obj: XfsObject, writer: BinaryWriter) -> None:
    version = xfs.header.major_version
    writer.write_u16(((obj.def_id << 1) | 1) & 0xFFFF)
    writer.write_s16(obj.id)

    start = writer.tell()
    writer.write_u32(0)  # size, filled in below
    if version == VERSION_15:
        writer.write_u32(0)  # v15 sizes take 8 bytes

    for item in obj.fields:
        if item.is_array:
            entries = list(item.value or [])
            writer.write_s32(len(entries))
        else:
            entries = [item.value]
            writer.write_s32(1)
        for entry in entries:
            _save_value(xfs, writer, item.type, entry)

    end = writer.tell()
    size = end - start
    writer.seek(start)
    if version == VERSION_15:
        writer.write_u64(size)
    elif version == VERSION_16:
        writer.write_u32(size)
    writer.seek(end)


def serialize(xfs: Xfs) -> bytes:
    """Encode a whole XFS document."""
    arch = _arch_for_save(xfs)
    if xfs.root is None:
        raise XfsError("Failed to save XFS object: no root object")
    writer = BinaryWriter()
    try:
        writer.write(xfs.header.pack())
        writer.write(arch.save_defs(xfs.defs, xfs.header.def_size))
        _save_object(xfs, xfs.root, writer)
    except ValueError as exc:
        raise XfsError(f"Failed to save XFS object: {exc}") from exc
    return writer.getvalue()


def load(path: PathLike) -> Xfs:
    """Read an XFS document from a file."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise XfsError(f"Failed to open XFS file: {path}") from exc
    return parse(data)


def save(path: PathLike, xfs: Xfs) -> None:
    """Write an XFS document to a file."""
    data = serialize(xfs)
    try:
        Path(path).write_bytes(data)
    except OSError as exc:
        raise XfsError(f"Failed to write XFS file: {path}") from exc


def is_xfs_file(path: PathLike) -> bool:
    """Return True when the file starts with a complete XFS header."""
    try:
        with open(path, "rb") as handle:
            data = handle.read(HEADER_SIZE)
    except OSError:
        return False
    if len(data) < HEADER_SIZE:
        return False
    return Header.unpack(data).magic == MAGIC
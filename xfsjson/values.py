"""Binary encoding of individual property values.

Simple types map to Python scalars, strings to ``str`` and custom values to a
list of strings. Compound types map to dicts keyed by their member names;
matrices and fixed arrays map to tuples (matrices as tuples of rows).
Members that only pad a structure are kept under ``pad`` so that a value
read from a file is written back unchanged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from xfsjson.binary import BinaryReader, BinaryWriter
from xfsjson.model import XfsType, is_unsupported_type

log = logging.getLogger(__name__)

STRING_MAX = 512
CUSTOM_STRING_MAX = 128


@dataclass(frozen=True)
class _Array:
    item: Any
    count: int


_Spec = Union[str, _Array, Tuple[Tuple[str, Any], ...]]

_READERS: Dict[str, Callable[[BinaryReader], Any]] = {
    "f": BinaryReader.read_f32,
    "i": BinaryReader.read_s32,
    "I": BinaryReader.read_u32,
    "H": BinaryReader.read_u16,
}

_WRITERS: Dict[str, Callable[[BinaryWriter, Any], None]] = {
    "f": BinaryWriter.write_f32,
    "i": BinaryWriter.write_s32,
    "I": BinaryWriter.write_u32,
    "H": BinaryWriter.write_u16,
}


def _matrix(rows: int, cols: int) -> _Array:
    return _Array(_Array("f", cols), rows)


_VEC2 = (("x", "f"), ("y", "f"))
_FLOAT3 = (("x", "f"), ("y", "f"), ("z", "f"))
_FLOAT4 = (("x", "f"), ("y", "f"), ("z", "f"), ("w", "f"))
_VEC3 = (("x", "f"), ("y", "f"), ("z", "f"), ("pad", "f"))
_SOA_VEC3 = (("x", _FLOAT4), ("y", _FLOAT4), ("z", _FLOAT4))
_CAPSULE = (("p0", _VEC3), ("p1", _VEC3), ("radius", "f"), ("pad", _Array("f", 3)))

_LAYOUTS: Dict[XfsType, _Spec] = {
    XfsType.POINT: (("x", "i"), ("y", "i")),
    XfsType.SIZE: (("w", "i"), ("h", "i")),
    XfsType.RECT: (("l", "i"), ("t", "i"), ("r", "i"), ("b", "i")),
    XfsType.MATRIX: _matrix(4, 4),
    XfsType.VECTOR3: _VEC3,
    XfsType.VECTOR4: _FLOAT4,
    XfsType.QUATERNION: _FLOAT4,
    XfsType.FLOAT2: _VEC2,
    XfsType.FLOAT3: _FLOAT3,
    XfsType.FLOAT4: _FLOAT4,
    XfsType.FLOAT3X3: _matrix(3, 3),
    XfsType.FLOAT4X3: _matrix(4, 3),
    XfsType.FLOAT4X4: _matrix(4, 4),
    XfsType.EASECURVE: (("p1", "f"), ("p2", "f")),
    XfsType.LINE: (("from", _VEC3), ("dir", _VEC3)),
    XfsType.LINESEGMENT: (("p0", _VEC3), ("p1", _VEC3)),
    XfsType.RAY: (("from", _VEC3), ("dir", _VEC3)),
    XfsType.PLANE: (("normal", _FLOAT3), ("dist", "f")),
    XfsType.SPHERE: (("center", _FLOAT3), ("radius", "f")),
    XfsType.CAPSULE: _CAPSULE,
    XfsType.AABB: (("min", _VEC3), ("max", _VEC3)),
    XfsType.OBB: (("transform", _matrix(4, 4)), ("extent", _VEC3)),
    XfsType.CYLINDER: _CAPSULE,
    XfsType.TRIANGLE: (("p0", _VEC3), ("p1", _VEC3), ("p2", _VEC3)),
    XfsType.CONE: (("p0", _FLOAT3), ("r0", "f"), ("p1", _FLOAT3), ("r1", "f")),
    XfsType.TORUS: (("pos", _VEC3), ("r", "f"), ("axis", _VEC3), ("cr", "f")),
    XfsType.ELLIPSOID: (("pos", _VEC3), ("r", _VEC3)),
    XfsType.RANGE: (("s", "i"), ("r", "I")),
    XfsType.RANGEF: (("s", "f"), ("r", "f")),
    XfsType.RANGEU16: (("s", "H"), ("r", "H")),
    XfsType.HERMITECURVE: (("x", _Array("f", 8)), ("y", _Array("f", 8))),
    XfsType.FLOAT3X4: _matrix(3, 4),
    XfsType.LINESEGMENT4: (("p0", _SOA_VEC3), ("p1", _SOA_VEC3)),
    XfsType.AABB4: (("min", _SOA_VEC3), ("max", _SOA_VEC3)),
    XfsType.VECTOR2: _VEC2,
    XfsType.MATRIX33: _matrix(3, 3),
    XfsType.RECT3D_XZ: (
        ("lt", _VEC2),
        ("lb", _VEC2),
        ("rt", _VEC2),
        ("rb", _VEC2),
        ("height", "f"),
    ),
    XfsType.RECT3D: (
        ("normal", _VEC3),
        ("size_w", "f"),
        ("center", _VEC3),
        ("size_h", "f"),
    ),
    XfsType.PLANE_XZ: (("dist", "f"),),
    XfsType.RAY_Y: (("from", _FLOAT3), ("dir", "f")),
    XfsType.POINTF: (("x", "f"), ("y", "f")),
    XfsType.SIZEF: (("w", "f"), ("h", "f")),
    # Stored top, left, bottom, right.
    XfsType.RECTF: (("t", "f"), ("l", "f"), ("b", "f"), ("r", "f")),
}

_SCALARS: Dict[XfsType, Tuple[Callable[[BinaryReader], Any], Callable[[BinaryWriter, Any], None], Any]] = {
    XfsType.BOOL: (BinaryReader.read_bool, BinaryWriter.write_bool, False),
    XfsType.U8: (BinaryReader.read_u8, BinaryWriter.write_u8, 0),
    XfsType.U16: (BinaryReader.read_u16, BinaryWriter.write_u16, 0),
    XfsType.U32: (BinaryReader.read_u32, BinaryWriter.write_u32, 0),
    XfsType.U64: (BinaryReader.read_u64, BinaryWriter.write_u64, 0),
    XfsType.S8: (BinaryReader.read_s8, BinaryWriter.write_s8, 0),
    XfsType.S16: (BinaryReader.read_s16, BinaryWriter.write_s16, 0),
    XfsType.S32: (BinaryReader.read_s32, BinaryWriter.write_s32, 0),
    XfsType.S64: (BinaryReader.read_s64, BinaryWriter.write_s64, 0),
    XfsType.F32: (BinaryReader.read_f32, BinaryWriter.write_f32, 0.0),
    XfsType.F64: (BinaryReader.read_f64, BinaryWriter.write_f64, 0.0),
    XfsType.COLOR: (BinaryReader.read_u32, BinaryWriter.write_u32, 0),
    XfsType.TIME: (BinaryReader.read_s64, BinaryWriter.write_s64, 0),
}

_STRING_TYPES = (XfsType.STRING, XfsType.CSTRING)
_CLASS_TYPES = (XfsType.CLASS, XfsType.CLASSREF)


def _as_type(xfs_type: Union[int, XfsType]) -> Optional[XfsType]:
    try:
        return XfsType(int(xfs_type))
    except ValueError:
        return None


def _read_spec(reader: BinaryReader, spec: _Spec) -> Any:
    if isinstance(spec, str):
        return _READERS[spec](reader)
    if isinstance(spec, _Array):
        return tuple(_read_spec(reader, spec.item) for _ in range(spec.count))
    return {name: _read_spec(reader, member) for name, member in spec}


def _zero(spec: _Spec) -> Any:
    if isinstance(spec, str):
        return 0.0 if spec == "f" else 0
    if isinstance(spec, _Array):
        return tuple(_zero(spec.item) for _ in range(spec.count))
    return {name: _zero(member) for name, member in spec}


def _write_spec(writer: BinaryWriter, spec: _Spec, value: Any) -> None:
    if value is None:
        value = _zero(spec)
    if isinstance(spec, str):
        _WRITERS[spec](writer, value)
        return
    if isinstance(spec, _Array):
        items = tuple(value)
        if len(items) != spec.count:
            raise ValueError(f"expected {spec.count} elements, got {len(items)}")
        for item in items:
            _write_spec(writer, spec.item, item)
        return
    if not isinstance(value, Mapping):
        raise ValueError(f"expected a mapping, got {type(value).__name__}")
    for name, member in spec:
        _write_spec(writer, member, value.get(name))


def _check_readable(kind: Optional[XfsType]) -> bool:
    """Return True when ``kind`` carries a value this module encodes."""
    if kind is None or kind is XfsType.UNDEFINED:
        return False
    if kind in _CLASS_TYPES:
        raise ValueError(f"{kind.name} values are objects and are handled by the object codec")
    if is_unsupported_type(kind):
        log.warning("Unsupported type: %d", int(kind))
        return False
    return True


def read_value(reader: BinaryReader, xfs_type: Union[int, XfsType]) -> Any:
    """Read one value of ``xfs_type``; types without a value yield None."""
    kind = _as_type(xfs_type)
    if not _check_readable(kind):
        return None
    if kind in _SCALARS:
        return _SCALARS[kind][0](reader)
    if kind in _STRING_TYPES:
        return reader.read_str(STRING_MAX)
    if kind is XfsType.CUSTOM:
        count = reader.read_u8()
        return [reader.read_str(CUSTOM_STRING_MAX) for _ in range(count)]
    return _read_spec(reader, _LAYOUTS[kind])


def write_value(writer: BinaryWriter, xfs_type: Union[int, XfsType], value: Any) -> None:
    """Write one value of ``xfs_type``; None writes the type's zero value."""
    kind = _as_type(xfs_type)
    if not _check_readable(kind):
        return
    if kind in _SCALARS:
        _, write, default = _SCALARS[kind]
        write(writer, default if value is None else value)
        return
    if kind in _STRING_TYPES:
        writer.write_str("" if value is None else value)
        return
    if kind is XfsType.CUSTOM:
        entries: List[Optional[str]] = list(value or [])
        writer.write_u8(len(entries))
        for entry in entries:
            writer.write_str("" if entry is None else entry)
        return
    _write_spec(writer, _LAYOUTS[kind], value)
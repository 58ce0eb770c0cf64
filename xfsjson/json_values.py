"""JSON form of individual property values.

Values use the representation of :mod:`xfsjson.values`: scalars, strings,
lists of strings for custom values, dicts keyed by member name for compound
types and tuples of rows for matrices. Padding members are not written to
JSON and come back as zeros.
"""

from __future__ import annotations

import math
import re
import struct
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from xfsjson.model import XfsError, XfsType, is_unsupported_type

_F32 = struct.Struct("<f")
_HEX = re.compile(r"\s*([+-]?)(?:0[xX](?=[0-9a-fA-F]))?([0-9a-fA-F]*)")
_ULONG_MAX = (1 << 64) - 1

_CLASS_TYPES = (XfsType.CLASS, XfsType.CLASSREF)
_STRING_TYPES = (XfsType.STRING, XfsType.CSTRING)

_INTS: Dict[XfsType, Tuple[int, bool]] = {
    XfsType.U8: (8, False),
    XfsType.U16: (16, False),
    XfsType.U32: (32, False),
    XfsType.U64: (64, False),
    XfsType.S8: (8, True),
    XfsType.S16: (16, True),
    XfsType.S32: (32, True),
    XfsType.S64: (64, True),
    XfsType.TIME: (64, True),
}


@dataclass(frozen=True)
class _Matrix:
    """Rows of floats; in JSON an object keyed ``m<row><col>``."""

    rows: int
    cols: int


@dataclass(frozen=True)
class _List:
    """A fixed number of items; in JSON an array."""

    item: Any
    count: int


@dataclass(frozen=True)
class _Pad:
    """A member kept only in the binary form."""

    zero: Any


@dataclass(frozen=True)
class _WriteOnly:
    """A member written to JSON but not read back from it."""

    spec: Any


_XY = (("x", "f"), ("y", "f"))
_XYZ = (("x", "f"), ("y", "f"), ("z", "f"))
_XYZW = (("x", "f"), ("y", "f"), ("z", "f"), ("w", "f"))
_VEC3 = _XYZ + (("pad", _Pad(0.0)),)
_SOA_VEC3 = (("x", _XYZW), ("y", _XYZW), ("z", _XYZW))
_CAPSULE = (
    ("p0", _VEC3),
    ("p1", _VEC3),
    ("radius", "f"),
    ("pad", _Pad((0.0, 0.0, 0.0))),
)

_LAYOUTS: Dict[XfsType, Any] = {
    XfsType.POINT: (("x", "i"), ("y", "i")),
    XfsType.SIZE: (("w", "i"), ("h", "i")),
    XfsType.RECT: (("t", "i"), ("l", "i"), ("r", "i"), ("b", "i")),
    XfsType.MATRIX: _Matrix(4, 4),
    XfsType.VECTOR3: _VEC3,
    XfsType.VECTOR4: _XYZW,
    XfsType.QUATERNION: _XYZW,
    XfsType.FLOAT2: _XY,
    XfsType.FLOAT3: _XYZ,
    XfsType.FLOAT4: _XYZW,
    XfsType.FLOAT3X3: _Matrix(3, 3),
    XfsType.FLOAT4X3: _Matrix(4, 3),
    XfsType.FLOAT4X4: _Matrix(4, 4),
    XfsType.EASECURVE: (("p1", "f"), ("p2", "f")),
    XfsType.LINE: (("from", _VEC3), ("dir", _VEC3)),
    XfsType.LINESEGMENT: (("p0", _VEC3), ("p1", _VEC3)),
    XfsType.RAY: (("from", _VEC3), ("dir", _VEC3)),
    XfsType.PLANE: (("normal", _XYZ), ("dist", "f")),
    XfsType.SPHERE: (("center", _XYZ), ("radius", "f")),
    XfsType.CAPSULE: _CAPSULE,
    XfsType.AABB: (("min", _VEC3), ("max", _VEC3)),
    XfsType.OBB: (("transform", _Matrix(4, 4)), ("extent", _VEC3)),
    XfsType.CYLINDER: _CAPSULE,
    XfsType.TRIANGLE: (("p0", _VEC3), ("p1", _VEC3), ("p2", _VEC3)),
    XfsType.CONE: (("p0", _XYZ), ("p1", _XYZ), ("r0", "f"), ("r1", "f")),
    XfsType.TORUS: (("pos", _VEC3), ("axis", _VEC3), ("r", "f"), ("cr", "f")),
    XfsType.ELLIPSOID: (("pos", _VEC3), ("r", _VEC3)),
    XfsType.RANGE: (("s", "i"), ("r", "I")),
    XfsType.RANGEF: (("s", "f"), ("r", "f")),
    XfsType.RANGEU16: (("s", "H"), ("r", "H")),
    XfsType.HERMITECURVE: (("x", _List("f", 8)), ("y", _List("f", 8))),
    XfsType.FLOAT3X4: _Matrix(3, 4),
    XfsType.LINESEGMENT4: (("p0", _SOA_VEC3), ("p1", _SOA_VEC3)),
    XfsType.AABB4: (("min", _SOA_VEC3), ("max", _SOA_VEC3)),
    XfsType.VECTOR2: _XY,
    XfsType.MATRIX33: _Matrix(3, 3),
    # The height is written out but never read back.
    XfsType.RECT3D_XZ: (
        ("lt", _XY),
        ("lb", _XY),
        ("rt", _XY),
        ("rb", _XY),
        ("height", _WriteOnly("f")),
    ),
    XfsType.RECT3D: (
        ("normal", _VEC3),
        ("center", _VEC3),
        ("size_w", "f"),
        ("size_h", "f"),
    ),
    XfsType.PLANE_XZ: (("dist", "f"),),
    XfsType.RAY_Y: (("from", _XYZ), ("dir", "f")),
    XfsType.POINTF: (("x", "f"), ("y", "f")),
    XfsType.SIZEF: (("w", "f"), ("h", "f")),
    XfsType.RECTF: (("l", "f"), ("t", "f"), ("r", "f"), ("b", "f")),
}

_INT_SPECS = {"i": (32, True), "I": (32, False), "H": (16, False)}


def _as_type(xfs_type: Union[int, XfsType]) -> Optional[XfsType]:
    try:
        return XfsType(int(xfs_type))
    except ValueError:
        return None


def _member(value: Any, key: str) -> Any:
    return value.get(key) if isinstance(value, Mapping) else None


def _index(value: Any, index: int) -> Any:
    try:
        return value[index]
    except (TypeError, IndexError, KeyError):
        return None


def _out(spec: Any, value: Any) -> Any:
    if isinstance(spec, str):
        if value is None:
            return 0.0 if spec == "f" else 0
        return value
    if isinstance(spec, _WriteOnly):
        return _out(spec.spec, value)
    if isinstance(spec, _Matrix):
        return {
            f"m{i}{j}": _out("f", _index(_index(value, i), j))
            for i in range(spec.rows)
            for j in range(spec.cols)
        }
    if isinstance(spec, _List):
        return [_out(spec.item, _index(value, k)) for k in range(spec.count)]
    return {
        name: _out(member, _member(value, name))
        for name, member in spec
        if not isinstance(member, _Pad)
    }


def _json_number(node: Any) -> Optional[Union[int, float]]:
    if isinstance(node, bool) or not isinstance(node, (int, float)):
        return None
    return node


def _to_double(number: Optional[Union[int, float]]) -> float:
    if number is None:
        return 0.0
    try:
        return float(number)
    except OverflowError:
        return math.copysign(math.inf, number)


def _to_f32(number: Optional[Union[int, float]]) -> float:
    value = _to_double(number)
    try:
        return _F32.unpack(_F32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _to_int(number: Optional[Union[int, float]], bits: int, signed: bool) -> int:
    if number is None:
        return 0
    if isinstance(number, float):
        if not math.isfinite(number):
            return 0
        number = int(number)
    number &= (1 << bits) - 1
    if signed and number >= 1 << (bits - 1):
        number -= 1 << bits
    return number


def _in(spec: Any, node: Any) -> Any:
    if isinstance(spec, str):
        number = _json_number(node)
        if spec == "f":
            return _to_f32(number)
        return _to_int(number, *_INT_SPECS[spec])
    if isinstance(spec, _Pad):
        return spec.zero
    if isinstance(spec, _WriteOnly):
        return _in(spec.spec, None)
    if isinstance(spec, _Matrix):
        return tuple(
            tuple(_in("f", _member(node, f"m{i}{j}")) for j in range(spec.cols))
            for i in range(spec.rows)
        )
    if isinstance(spec, _List):
        items = node if isinstance(node, list) else []
        return tuple(_in(spec.item, _index(items, k)) for k in range(spec.count))
    return {name: _in(member, _member(node, name)) for name, member in spec}


def _parse_color(text: str) -> int:
    if text.startswith("#"):
        text = text[1:]
    match = _HEX.match(text)
    sign, digits = match.group(1), match.group(2)
    if not digits:
        return 0
    value = min(int(digits, 16), _ULONG_MAX)
    if sign == "-":
        value = -value & _ULONG_MAX
    return value & 0xFFFFFFFF


def value_to_json(xfs_type: Union[int, XfsType], value: Any) -> Any:
    """Return the JSON form of one value; types without a value give None."""
    kind = _as_type(xfs_type)
    if kind is None or kind is XfsType.UNDEFINED or is_unsupported_type(kind):
        return None
    if kind in _CLASS_TYPES:
        raise ValueError(f"{kind.name} values are objects and are handled by the object codec")
    if kind is XfsType.BOOL:
        return bool(value)
    if kind in _INTS:
        return 0 if value is None else int(value)
    if kind in (XfsType.F32, XfsType.F64):
        return 0.0 if value is None else float(value)
    if kind in _STRING_TYPES:
        return "" if value is None else value
    if kind is XfsType.COLOR:
        return "#%08X" % ((value or 0) & 0xFFFFFFFF)
    if kind is XfsType.CUSTOM:
        return {"values": ["" if entry is None else entry for entry in (value or [])]}
    return _out(_LAYOUTS[kind], value)


def value_from_json(xfs_type: Union[int, XfsType], node: Any) -> Any:
    """Decode one value from its JSON form; JSON null gives None."""
    if node is None:
        return None
    kind = _as_type(xfs_type)
    if kind is None:
        return None
    if kind is XfsType.UNDEFINED or is_unsupported_type(kind):
        raise XfsError(f"Unsupported type: {int(kind)}")
    if kind in _CLASS_TYPES:
        raise ValueError(f"{kind.name} values are objects and are handled by the object codec")
    if kind is XfsType.BOOL:
        return node is True
    if kind in _INTS:
        return _to_int(_json_number(node), *_INTS[kind])
    if kind is XfsType.F32:
        return _to_f32(_json_number(node))
    if kind is XfsType.F64:
        return _to_double(_json_number(node))
    if kind in _STRING_TYPES:
        return node if isinstance(node, str) else None
    if kind is XfsType.COLOR:
        return _parse_color(node) if isinstance(node, str) else 0
    if kind is XfsType.CUSTOM:
        entries = _member(node, "values")
        if not isinstance(entries, list):
            raise XfsError("custom value needs a 'values' array")
        count = len(entries) & 0xFF
        result = []
        for entry in entries[:count]:
            if not isinstance(entry, str):
                raise XfsError("custom values must be strings")
            result.append(entry)
        return result
    if kind is XfsType.HERMITECURVE:
        if not isinstance(_member(node, "x"), list) or not isinstance(_member(node, "y"), list):
            raise XfsError("hermite curve needs 'x' and 'y' arrays")
    return _in(_LAYOUTS[kind], node)
"""Data model of XFS documents: header, class definitions and objects."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

MAGIC = 0x534658  # "XFS\0"
VERSION_15 = 15
VERSION_16 = 16

_HEADER = struct.Struct("<IHHqii")
HEADER_SIZE = _HEADER.size


class XfsError(Exception):
    """Raised when an XFS document cannot be read or written."""


class InvalidXfsError(XfsError):
    """Raised when data is not a valid XFS document."""


class XfsType(enum.IntEnum):
    """Property value types."""

    UNDEFINED = 0x0
    CLASS = 0x1
    CLASSREF = 0x2
    BOOL = 0x3
    U8 = 0x4
    U16 = 0x5
    U32 = 0x6
    U64 = 0x7
    S8 = 0x8
    S16 = 0x9
    S32 = 0xA
    S64 = 0xB
    F32 = 0xC
    F64 = 0xD
    STRING = 0xE
    COLOR = 0xF
    POINT = 0x10
    SIZE = 0x11
    RECT = 0x12
    MATRIX = 0x13
    VECTOR3 = 0x14
    VECTOR4 = 0x15
    QUATERNION = 0x16
    PROPERTY = 0x17
    EVENT = 0x18
    GROUP = 0x19
    PAGE_BEGIN = 0x1A
    PAGE_END = 0x1B
    EVENT32 = 0x1C
    ARRAY = 0x1D
    PROPERTYLIST = 0x1E
    GROUP_END = 0x1F
    CSTRING = 0x20
    TIME = 0x21
    FLOAT2 = 0x22
    FLOAT3 = 0x23
    FLOAT4 = 0x24
    FLOAT3X3 = 0x25
    FLOAT4X3 = 0x26
    FLOAT4X4 = 0x27
    EASECURVE = 0x28
    LINE = 0x29
    LINESEGMENT = 0x2A
    RAY = 0x2B
    PLANE = 0x2C
    SPHERE = 0x2D
    CAPSULE = 0x2E
    AABB = 0x2F
    OBB = 0x30
    CYLINDER = 0x31
    TRIANGLE = 0x32
    CONE = 0x33
    TORUS = 0x34
    ELLIPSOID = 0x35
    RANGE = 0x36
    RANGEF = 0x37
    RANGEU16 = 0x38
    HERMITECURVE = 0x39
    ENUMLIST = 0x3A
    FLOAT3X4 = 0x3B
    LINESEGMENT4 = 0x3C
    AABB4 = 0x3D
    OSCILLATOR = 0x3E
    VARIABLE = 0x3F
    VECTOR2 = 0x40
    MATRIX33 = 0x41
    RECT3D_XZ = 0x42
    RECT3D = 0x43
    RECT3D_COLLISION = 0x44
    PLANE_XZ = 0x45
    RAY_Y = 0x46
    POINTF = 0x47
    SIZEF = 0x48
    RECTF = 0x49
    EVENT64 = 0x4A
    END = 0x4B
    CUSTOM = 0x80


_UNSUPPORTED_TYPES = frozenset(
    {
        XfsType.PROPERTY,
        XfsType.EVENT,
        XfsType.GROUP,
        XfsType.PAGE_BEGIN,
        XfsType.PAGE_END,
        XfsType.EVENT32,
        XfsType.ARRAY,
        XfsType.PROPERTYLIST,
        XfsType.GROUP_END,
        XfsType.ENUMLIST,
        XfsType.OSCILLATOR,
        XfsType.VARIABLE,
        XfsType.RECT3D_COLLISION,
        XfsType.EVENT64,
        XfsType.END,
    }
)


def is_unsupported_type(xfs_type: Union[int, XfsType]) -> bool:
    """Return True for the meta types that carry no serialisable value."""
    return int(xfs_type) in _UNSUPPORTED_TYPES


class Structure(enum.IntEnum):
    """Layout actually used by the definition block of a file."""

    UNKNOWN = 0
    V15_64BIT = 1
    V16_32BIT = 2
    V16_HYBRID = 3  # v16 layout behind a v15 header


@dataclass
class Header:
    """The fixed-size file header."""

    magic: int = MAGIC
    major_version: int = 0
    minor_version: int = 0
    class_count: int = 0
    def_count: int = 0
    def_size: int = 0

    def pack(self) -> bytes:
        """Encode the header as it is stored on disk."""
        try:
            return _HEADER.pack(
                self.magic,
                self.major_version,
                self.minor_version,
                self.class_count,
                self.def_count,
                self.def_size,
            )
        except struct.error as exc:
            raise ValueError(f"header field out of range: {exc}") from exc

    @classmethod
    def unpack(cls, data: Union[bytes, bytearray, memoryview]) -> "Header":
        """Decode a header from the start of ``data``."""
        if len(data) < HEADER_SIZE:
            raise InvalidXfsError(
                f"header needs {HEADER_SIZE} bytes, got {len(data)}"
            )
        return cls(*_HEADER.unpack_from(data))


@dataclass
class PropertyDef:
    """One property of a class definition."""

    name: str
    type: int = XfsType.UNDEFINED
    attr: int = 0
    bytes: int = 0
    disable: bool = False


@dataclass
class ClassDef:
    """A class definition; ``raw_header`` keeps the stored header bytes."""

    dti_hash: int = 0
    init: bool = False
    raw_header: bytes = bytes(16)
    props: List[PropertyDef] = field(default_factory=list)


@dataclass
class Field:
    """A property value of an object; ``value`` is a list when ``is_array``."""

    name: str
    type: int
    is_array: bool = False
    value: Any = None


@dataclass
class XfsObject:
    """An instance of a class definition."""

    definition: ClassDef
    def_id: int
    id: int = 0
    fields: List[Field] = field(default_factory=list)


@dataclass
class Xfs:
    """A whole XFS document."""

    header: Header = field(default_factory=Header)
    defs: List[ClassDef] = field(default_factory=list)
    root: Optional[XfsObject] = None
    structure: Structure = Structure.UNKNOWN
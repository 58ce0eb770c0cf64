import struct

import pytest

from xfsjson import arch_v15, arch_v16
from xfsjson.model import (
    HEADER_SIZE,
    ClassDef,
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
from xfsjson.xfs import (
    detect_hybrid_structure,
    is_xfs_file,
    load,
    parse,
    save,
    serialize,
)


def _v16_def(dti, props):
    return ClassDef(
        dti_hash=dti,
        raw_header=struct.pack("<II", dti, len(props)) + bytes(8),
        props=props,
    )


def _v15_def(dti, props):
    return ClassDef(
        dti_hash=dti,
        raw_header=struct.pack("<IIII", dti, 0, len(props), 0),
        props=props,
    )


def _document(version, child_props=None, child_fields=None):
    make = _v15_def if version == 15 else _v16_def
    arch = arch_v15 if version == 15 else arch_v16
    structure = Structure.V15_64BIT if version == 15 else Structure.V16_32BIT
    child_props = child_props or [PropertyDef("value", XfsType.F32)]
    child_fields = child_fields or [Field("value", XfsType.F32, False, 1.5)]
    root_def = make(
        0x1111,
        [
            PropertyDef("count", XfsType.U32),
            PropertyDef("name", XfsType.STRING),
            PropertyDef("items", XfsType.S32),
            PropertyDef("child", XfsType.CLASS),
            PropertyDef("empty", XfsType.U8),
        ],
    )
    child_def = make(0x2222, child_props)
    defs = [root_def, child_def]
    header = Header(
        major_version=version,
        minor_version=1,
        class_count=2,
        def_count=2,
        def_size=arch.get_def_size(defs, True),
    )
    child = XfsObject(child_def, 1, id=1, fields=child_fields)
    root = XfsObject(
        root_def,
        0,
        id=0,
        fields=[
            Field("count", XfsType.U32, False, 7),
            Field("name", XfsType.STRING, False, "hello"),
            Field("items", XfsType.S32, True, [1, -2, 3]),
            Field("child", XfsType.CLASS, False, child),
            Field("empty", XfsType.U8, True, []),
        ],
    )
    return Xfs(header=header, defs=defs, root=root, structure=structure)


@pytest.mark.parametrize("version", [15, 16])
def test_round_trip(version):
    doc = _document(version)
    assert parse(serialize(doc)) == doc


def test_magic_bytes():
    assert serialize(_document(16))[:4] == b"XFS\x00"


def test_root_reference_follows_definitions():
    doc = _document(16)
    data = serialize(doc)
    start = HEADER_SIZE + doc.header.def_size
    assert data[start:start + 4] == b"\x01\x00\x00\x00"


def test_v16_object_size_covers_rest():
    doc = _document(16)
    data = serialize(doc)
    size_pos = HEADER_SIZE + doc.header.def_size + 4
    assert struct.unpack_from("<I", data, size_pos)[0] == len(data) - size_pos


def test_v15_object_size_is_64_bit():
    doc = _document(15)
    data = serialize(doc)
    size_pos = HEADER_SIZE + doc.header.def_size + 4
    assert struct.unpack_from("<Q", data, size_pos)[0] == len(data) - size_pos


@pytest.mark.parametrize("version", [15, 16])
def test_parsed_structure(version):
    expected = Structure.V15_64BIT if version == 15 else Structure.V16_32BIT
    assert parse(serialize(_document(version))).structure == expected


@pytest.mark.parametrize("version", [15, 16])
def test_regular_files_are_not_hybrid(version):
    data = serialize(_document(version))
    assert detect_hybrid_structure(data, Header.unpack(data)) is False


def _hybrid_file():
    block = (
        struct.pack("<II", 8, 0)
        + struct.pack("<II", 0xABCD, 1)
        + struct.pack("<IBBH32x", 56, XfsType.U8, 0, 1)
        + b"x\x00\x00\x00"
    )
    header = Header(
        major_version=15, minor_version=0, class_count=1, def_count=1, def_size=len(block)
    )
    body = struct.pack("<HhIIIB", 1, 0, 13, 0, 1, 9)
    return header.pack() + block + body


def test_detect_hybrid():
    data = _hybrid_file()
    assert detect_hybrid_structure(data, Header.unpack(data)) is True


def test_parse_hybrid():
    doc = parse(_hybrid_file())
    assert doc.structure == Structure.V16_HYBRID
    assert doc.defs[0].dti_hash == 0xABCD
    assert doc.defs[0].props[0].name == "x"
    assert doc.root.fields[0].value == 9


def test_bad_magic():
    data = bytearray(serialize(_document(16)))
    data[0] = 0
    with pytest.raises(InvalidXfsError):
        parse(bytes(data))


def test_unsupported_version():
    data = bytearray(serialize(_document(16)))
    struct.pack_into("<H", data, 4, 17)
    with pytest.raises(InvalidXfsError):
        parse(bytes(data))


def test_short_header():
    with pytest.raises(InvalidXfsError):
        parse(b"XFS\x00")


def test_truncated_definitions():
    data = serialize(_document(16))
    with pytest.raises(XfsError):
        parse(data[:HEADER_SIZE + 10])


def test_null_root_is_error():
    doc = _document(16)
    data = bytearray(serialize(doc))
    struct.pack_into("<H", data, HEADER_SIZE + doc.header.def_size, 0)
    with pytest.raises(XfsError):
        parse(bytes(data))


def test_root_reference_out_of_range():
    doc = _document(16)
    data = bytearray(serialize(doc))
    struct.pack_into("<H", data, HEADER_SIZE + doc.header.def_size, (5 << 1) | 1)
    with pytest.raises(XfsError):
        parse(bytes(data))


def test_unknown_structure_falls_back_to_version():
    doc = _document(16)
    expected = serialize(doc)
    doc.structure = Structure.UNKNOWN
    assert serialize(doc) == expected


def test_unknown_structure_and_version():
    doc = _document(16)
    doc.structure = Structure.UNKNOWN
    doc.header.major_version = 17
    with pytest.raises(InvalidXfsError):
        serialize(doc)


def test_serialize_without_root():
    doc = _document(16)
    doc.root = None
    with pytest.raises(XfsError):
        serialize(doc)


def test_save_and_load(tmp_path):
    doc = _document(15)
    path = tmp_path / "doc.xfs"
    save(path, doc)
    assert load(path) == doc
    assert is_xfs_file(path) is True


def test_load_missing_file(tmp_path):
    with pytest.raises(XfsError):
        load(tmp_path / "missing.xfs")


def test_is_xfs_file_rejects(tmp_path):
    short = tmp_path / "short.xfs"
    short.write_bytes(b"XFS\x00")
    wrong = tmp_path / "wrong.xfs"
    wrong.write_bytes(bytes(HEADER_SIZE))
    assert is_xfs_file(short) is False
    assert is_xfs_file(wrong) is False
    assert is_xfs_file(tmp_path / "missing.xfs") is False
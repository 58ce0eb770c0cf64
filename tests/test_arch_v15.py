import struct

import pytest

from xfsjson.arch_v15 import get_def_size, load_defs, save_defs
from xfsjson.model import ClassDef, InvalidXfsError, PropertyDef, XfsType


def _def(dti, props, init=False, pad=0):
    raw = struct.pack("<IIII", dti, pad, len(props) | (int(init) << 15), 0)
    return ClassDef(dti_hash=dti, init=init, raw_header=raw, props=props)


def _sample_defs():
    return [
        _def(
            0x1234ABCD,
            [
                PropertyDef("mName", XfsType.STRING, 1, 4, False),
                PropertyDef("mValue", XfsType.F32, 0, 4, True),
            ],
            init=True,
        ),
        _def(0x0BADF00D, [PropertyDef("größe", XfsType.U32, 2, 0x7FFF, True)]),
        _def(7, []),
    ]


def _save(defs):
    return save_defs(defs, get_def_size(defs, True))


def test_round_trip():
    defs = _sample_defs()
    assert load_defs(_save(defs), len(defs)) == defs


def test_saved_block_has_requested_size():
    defs = _sample_defs()
    size = get_def_size(defs, True) + 16
    assert len(save_defs(defs, size)) == size


def test_def_size_alignment_and_strings():
    defs = _sample_defs()
    bare = get_def_size(defs, False)
    full = get_def_size(defs, True)
    strings = sum(len(p.name.encode()) + 1 for d in defs for p in d.props)
    assert full % 4 == 0
    assert bare + strings <= full < bare + strings + 4


def test_empty_definition_list():
    assert get_def_size([], True) == 0
    assert load_defs(save_defs([], 0), 0) == []


def test_layout_offsets_and_names():
    defs = _sample_defs()
    saved = _save(defs)
    first_def = struct.unpack_from("<Q", saved, 0)[0]
    assert first_def == 8 * len(defs)
    name_offset = struct.unpack_from("<Q", saved, first_def + 16)[0]
    assert name_offset == get_def_size(defs, False)
    assert saved[name_offset:name_offset + 6] == b"mName\x00"


def test_raw_header_padding_preserved():
    defs = [_def(99, [PropertyDef("a", XfsType.U8)], pad=0xDEADBEEF)]
    loaded = load_defs(_save(defs), 1)
    assert loaded[0].raw_header == defs[0].raw_header
    assert loaded[0].dti_hash == 99


def test_zero_offset_gives_empty_definition():
    assert load_defs(bytes(8), 1) == [ClassDef()]


def test_empty_definition_round_trip():
    assert load_defs(_save([ClassDef()]), 1) == [ClassDef()]


def test_block_smaller_than_offset_table():
    with pytest.raises(InvalidXfsError):
        load_defs(b"\x00\x00", 1)


def test_negative_count():
    with pytest.raises(InvalidXfsError):
        load_defs(bytes(8), -1)


def test_definition_out_of_bounds():
    with pytest.raises(InvalidXfsError):
        load_defs(struct.pack("<Q", 64), 1)


def test_name_out_of_bounds():
    block = bytearray(_save([_def(1, [PropertyDef("abc", XfsType.U8)])]))
    struct.pack_into("<Q", block, 8 + 16, len(block) + 10)
    with pytest.raises(InvalidXfsError):
        load_defs(block, 1)


def test_save_into_too_small_block():
    defs = _sample_defs()
    with pytest.raises(ValueError):
        save_defs(defs, get_def_size(defs, True) - 4)
import json
import struct

import pytest

from xfsjson import arch_v16
from xfsjson.args import Args
from xfsjson.convert import (
    ConversionError,
    convert_file,
    json_to_xfs_file,
    run,
    xfs_to_json_file,
)
from xfsjson.model import (
    ClassDef,
    Field,
    Header,
    PropertyDef,
    Structure,
    Xfs,
    XfsObject,
    XfsType,
)
from xfsjson.xfs import save, serialize


def _sample(ratio=0.5):
    defs = [
        ClassDef(
            dti_hash=0xABCD,
            raw_header=struct.pack("<II", 0xABCD, 3) + bytes(8),
            props=[
                PropertyDef("count", XfsType.U32),
                PropertyDef("name", XfsType.STRING),
                PropertyDef("ratio", XfsType.F32),
            ],
        )
    ]
    root = XfsObject(
        defs[0],
        0,
        0,
        [
            Field("count", XfsType.U32, False, 7),
            Field("name", XfsType.STRING, False, "hello"),
            Field("ratio", XfsType.F32, False, ratio),
        ],
    )
    header = Header(
        major_version=16,
        minor_version=0,
        class_count=1,
        def_count=1,
        def_size=arch_v16.get_def_size(defs, True),
    )
    return Xfs(header, defs, root, Structure.V16_32BIT)


@pytest.fixture
def xfs_file(tmp_path):
    path = tmp_path / "sample.xfs"
    save(path, _sample())
    return path


def test_xfs_to_json_file(xfs_file, tmp_path, capsys):
    out = tmp_path / "sample.json"
    xfs_to_json_file(xfs_file, out)
    doc = json.loads(out.read_text(encoding="utf-8"))
    assert doc["root"] == {"$id": 0, "count": 7, "name": "hello", "ratio": 0.5}
    assert f"Converted {xfs_file} to {out}" in capsys.readouterr().out


def test_round_trip_files(xfs_file, tmp_path):
    json_path = tmp_path / "sample.json"
    back = tmp_path / "back.xfs"
    xfs_to_json_file(xfs_file, json_path)
    json_to_xfs_file(json_path, back)
    assert back.read_bytes() == xfs_file.read_bytes()


def test_convert_file_dispatches(xfs_file, tmp_path):
    json_path = tmp_path / "a.json"
    back = tmp_path / "b.xfs"
    convert_file(xfs_file, json_path)
    convert_file(json_path, back)
    assert back.read_bytes() == serialize(_sample())


def test_non_finite_float_written_as_null(tmp_path):
    path = tmp_path / "nan.xfs"
    save(path, _sample(ratio=float("nan")))
    out = tmp_path / "nan.json"
    xfs_to_json_file(path, out)
    assert json.loads(out.read_text(encoding="utf-8"))["root"]["ratio"] is None


def test_neither_json_nor_xfs(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("plain text that is long enough to be a header")
    with pytest.raises(ConversionError, match="neither JSON nor XFS"):
        convert_file(path, tmp_path / "out")


def test_missing_input_is_neither(tmp_path):
    with pytest.raises(ConversionError, match="neither JSON nor XFS"):
        convert_file(tmp_path / "missing.xfs", tmp_path / "out")


def test_missing_json_input(tmp_path):
    with pytest.raises(ConversionError, match="Failed to open input file"):
        json_to_xfs_file(tmp_path / "missing.json", tmp_path / "out.xfs")


@pytest.mark.parametrize("text", ["{not json", '{"root": NaN, "$defs": []}'])
def test_invalid_json(tmp_path, text):
    path = tmp_path / "bad.json"
    path.write_text(text)
    with pytest.raises(ConversionError, match="Failed to parse JSON file"):
        json_to_xfs_file(path, tmp_path / "out.xfs")


def test_json_without_definitions(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text("{}")
    with pytest.raises(ConversionError, match="Failed to convert JSON to XFS"):
        json_to_xfs_file(path, tmp_path / "out.xfs")


def test_json_with_null_root_cannot_be_saved(tmp_path):
    path = tmp_path / "noroot.json"
    path.write_text(json.dumps({"root": None, "$defs": [], "$major_version": 16}))
    out = tmp_path / "out.xfs"
    with pytest.raises(ConversionError, match="Failed to save XFS file"):
        json_to_xfs_file(path, out)
    assert not out.exists()


def test_corrupt_xfs(tmp_path):
    data = bytearray(serialize(_sample()))
    path = tmp_path / "bad.xfs"
    path.write_bytes(bytes(data[:30]))
    with pytest.raises(ConversionError, match="Failed to load XFS file"):
        xfs_to_json_file(path, tmp_path / "bad.json")


def test_run_single_file(xfs_file, tmp_path):
    out = tmp_path / "run.json"
    run(Args(input=str(xfs_file), output=str(out), is_bulk=False))
    assert json.loads(out.read_text(encoding="utf-8"))["root"]["count"] == 7


def test_run_bulk_writes_nothing(xfs_file, tmp_path):
    before = sorted(p.name for p in tmp_path.iterdir())
    run(Args(input=str(tmp_path), output=str(tmp_path), is_bulk=True))
    assert sorted(p.name for p in tmp_path.iterdir()) == before
# xfsjson

Converts MT Framework XFS files to JSON and back.

An XFS file holds a table of class definitions and a tree of objects built
from them. `xfsjson` reads the version 15 (64-bit) and version 16 (32-bit)
definition layouts. It also reads "hybrid" files, which have a version 15
header in front of a version 16 definition layout. Each file becomes a JSON
document that you can edit and then write back out as XFS.

## Installation

```
pip install .
```

This needs no third-party libraries. To run the tests, install the `test`
extra (`pip install .[test]`) and run `pytest`.

## Command line

```
xfsjson [-h] [-o <output>] <input>
```

- `<input>` is the file to convert. A name ending in `.json` is converted to
  XFS. A file that begins with a complete XFS header carrying the XFS magic
  is converted to JSON. Any other file is rejected.
- `-o, --output <output>` sets the output file. If `<output>` is an existing
  directory, the result goes into it under the input's file name.
- Without `-o`, the output goes next to the input with an extension added:
  `.xfs` for an input ending in `.json`, and `.json` for any other input.
- `-h, --help` prints the usage text and exits.

The command exits with status 0 and prints `Conversion completed
successfully` on success. On failure it exits with status 1. Argument errors
are printed as `Error: ...`. Conversion errors go to standard error.

Examples:

```
xfsjson model.xfs                  # writes model.xfs.json
xfsjson model.xfs.json -o out.xfs  # writes out.xfs
```

You can also start the command with `python -m xfsjson.cli`.

## JSON layout

The document has these top-level keys:

- `root`: the root object. Each object has `$id`, which is the index of its
  class definition, and one key for each property. A property stored as an
  array (any count other than one) becomes a JSON array.
- `$defs`: the class definitions. Each definition has its `dti` hash and a
  `raw_header` hex string holding the stored definition header bytes, so
  they are written back unchanged. Each definition also has a `props` list,
  and each prop has `name`, `type`, `attr`, `bytes` and `disable`.
- `$major_version` and `$minor_version`: taken from the file header.

Value formats:

- Colours are written as strings of the form `"#XXXXXXXX"`, holding the
  32-bit value in eight upper-case hex digits.
- Vectors and shapes are written as objects with named members, for example
  `{"x": 1.0, "y": 2.0, "z": 3.0}`.
- Matrices are written as objects keyed by row and column, such as `m00`,
  `m01` and so on.
- Custom values are written as `{"values": [...]}`.
- Floats that JSON cannot hold (infinities, NaN) are written as `null`.

The output is indented by two spaces.

When a JSON document is written back as XFS:

- Objects are given new ids, numbered in the order they are read.
- The definition block size is recomputed from the definitions.
- Padding members, which are not part of the JSON, come back as zeros.
- The `height` of a `RECT3D_XZ` value is written to JSON but not read back,
  so it is saved as zero.

## Library use

```python
from xfsjson import json_codec, xfs

document = xfs.load("model.xfs")            # or xfs.parse(data)
data = json_codec.xfs_to_json(document)     # plain dicts and lists
rebuilt = json_codec.xfs_from_json(data)
xfs.save("copy.xfs", rebuilt)               # or xfs.serialize(rebuilt)
```

- `xfsjson.xfs.is_xfs_file(path)` reports whether a file starts with an XFS
  header.
- `xfsjson.convert` converts whole files with `convert_file`,
  `xfs_to_json_file` and `json_to_xfs_file`. These functions raise
  `ConversionError` when a conversion fails.
- Read and write errors in the lower layers raise `xfsjson.model.XfsError`,
  or `InvalidXfsError` when the data is not a valid or supported XFS
  document.
- The document model is in `xfsjson.model`: `Xfs`, `Header`, `ClassDef`,
  `PropertyDef`, `XfsObject`, `Field`, and the `XfsType` and `Structure`
  enums.

## What it does not do

- It does not convert directories. A directory is accepted as `<input>`
  (with `-o` naming an existing directory, or the input directory if `-o` is
  omitted), but no files in it are converted.
- The meta property types, such as property, event, group, page and enum
  list markers, carry no value. They are not written to JSON, and they are
  rejected when read from it.
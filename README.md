# anchorscope

anchorscope replaces text in files through exact anchors. An anchor is a piece
of text that must occur exactly once in the file. Before anything is written,
the matched scope is hashed (XXH3, 64-bit, seed 0, shown as 16 lowercase hex
digits), and the write goes ahead only when that hash equals the one you
expect. A file that changed after you looked at it is therefore never
overwritten by mistake.

## Install

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## The rules

- CRLF line endings are turned into LF before matching. No other
  normalization is done, and the written file keeps the LF endings.
- An anchor that does not occur gives `NO_MATCH`; an empty anchor does too.
  An anchor that occurs more than once, overlapping matches included, gives
  `MULTIPLE_MATCHES`.
- Files and anchor files must be valid UTF-8, or the result is
  `IO_ERROR: invalid UTF-8`.
- Paths containing `..`, symbolic links and files larger than 100 MB are
  refused with `IO_ERROR: permission denied`.
- When the hash of the matched scope differs from the expected hash, the
  result is `HASH_MISMATCH` and the file is left as it was.
- Files are written atomically: to a temporary file in the same directory,
  then renamed into place.

Every error is printed as one line on standard error and the exit status is
1. On success the command prints `OK: written <n> bytes` (or
`OK: buffer updated for true_id '<id>'`) and exits with 0.

## The `write` command

Replace a scope whose hash you already know:

```
anchorscope write --file notes.txt --anchor "TARGET" \
    --expected-hash 0123456789abcdef --replacement "NEW_CONTENT"
```

Options:

| Option | Meaning |
|---|---|
| `--file` | file to modify |
| `--anchor` | anchor text |
| `--anchor-file` | file holding the anchor text (not together with `--anchor`) |
| `--expected-hash` | hash of the scope as it was last seen |
| `--label` | a saved label standing for the file, anchor and hash |
| `--true-id` | the True ID of a stored buffer |
| `--replacement` | replacement text |
| `--from-replacement` | take the replacement from the stored `replacement` file |

Without a replacement the result is `NO_REPLACEMENT`. `--from-replacement`
cannot be combined with `--replacement` or `--anchor`; it works only with
`--label` or `--true-id`.

### With a label

```
anchorscope write --file notes.txt --label greet --replacement "Hi"
```

`--file` must still be given, but the file that is changed, the anchor and
the expected hash all come from the anchor metadata the label points to.
After a successful write the label, the anchor metadata and every buffer
directory of that True ID are removed. If the same True ID is stored twice
under one file, the result is `DUPLICATE_TRUE_ID`.

### With a True ID

```
anchorscope write --true-id <id> --expected-hash <scope-hash> --replacement "..."
```

`--expected-hash` is required and is compared with the `scope_hash` in the
buffer's metadata. The replacement is written as the buffer's content, the
metadata is updated with the new hash, the buffer directories of that True
ID are then removed, and the recorded source file is overwritten with the
replacement as its whole content.

## The store

Labels, anchor metadata and buffers live in `anchorscope/` inside the system
temporary directory (`anchorscope.storage.root_dir()`):

```
anchorscope/
  anchors/<hash>.json          anchor metadata (file, anchor, hash, line_range)
  labels/<name>.json           {"true_id": ...}
  <file_hash>/content          normalized content of a file
  <file_hash>/source_path      path of that file
  <file_hash>/<true_id>/       content, metadata.json, replacement
  <file_hash>/.../<true_id>/   nested buffers
```

`anchorscope.storage` saves, loads and removes these entries
(`save_anchor_metadata`, `save_label_mapping`, `load_label_target`,
`save_buffer_content`, `save_buffer_metadata`, `invalidate_label`,
`invalidate_true_id_hierarchy`, ...). `anchorscope.lookup` finds a True ID
anywhere in the store (`file_hash_for_true_id`, `find_true_id_dir`,
`load_buffer_metadata`, `load_anchor_metadata_by_true_id`, ...) and reports
ambiguity as `DUPLICATE_TRUE_ID`.

## Using it from Python

```python
from anchorscope.hashing import compute
from anchorscope.matcher import normalize_line_endings, resolve

data = normalize_line_endings(b"before\r\nTARGET\r\nafter")
m = resolve(data, b"TARGET")
print(m.start_line, m.end_line, compute(data[m.byte_start:m.byte_end]))
```

Setting up a label by hand and writing through it:

```python
from anchorscope import storage
from anchorscope.hashing import compute
from anchorscope.write import write

path = "notes.txt"  # holds "Hello\nWorld\n"
scope_hash = compute(b"Hello")
storage.save_anchor_metadata(
    storage.AnchorMeta(file=path, anchor="Hello", hash=scope_hash, line_range=(1, 1))
)
storage.save_label_mapping("greet", scope_hash)
print(write(file_path=path, label="greet", replacement="Hi"))
```

`write(...)` returns the success message. It raises `AnchorScopeError`
(`anchorscope.errors`) for the failures listed above, with `spec()` giving
the one-line error text; `NoMatch` and `MultipleMatches`
(`anchorscope.matcher`) when the anchor does not resolve; and `ValueError`
for options that cannot be used together.

## Configuration

`anchorscope.config` reads these variables:

| Variable | Function | Default |
|---|---|---|
| `ANCHORSCOPE_MAX_DEPTH` | `max_depth()`, clamped to 1–100 | 5 |
| `ANCHORSCOPE_MAX_FILE_SIZE` | `max_file_size()`, clamped to 1 B–1 GiB | 100 MiB |
| `ANCHORSCOPE_MAX_NESTING_DEPTH` | `max_nesting_depth()`, clamped to 1–1000 | 100 |
| `ANCHORSCOPE_ALLOWED_TOOLS` | `allowed_tools()`, comma-separated | sed, awk, perl, python3, node |

Invalid values fall back to the default. The file-size check applied by the
`write` command uses the fixed 100 MB limit of `anchorscope.security`, not
`ANCHORSCOPE_MAX_FILE_SIZE`. `allowed_tools()` is used by
`anchorscope.security.validate_tool_name`.

## What it does not do

The only command is `write`. There is no command to read an anchor and
create buffers, to define labels, to show the buffer tree, to print buffer
paths or to pipe a buffer through an external tool. Buffers, labels and
anchor metadata have to be created through `anchorscope.storage` (or already
be present in the store) before a label or True ID can be written through.
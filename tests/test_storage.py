import json
import tempfile

import pytest

from anchorscope import storage
from anchorscope.errors import AnchorScopeError, ErrorKind
from anchorscope.storage import AnchorMeta, BufferMeta


@pytest.fixture(autouse=True)
def isolated_tmp(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    return tmp_path


def test_layout(isolated_tmp):
    root = isolated_tmp / "anchorscope"
    assert storage.root_dir() == root
    assert storage.anchors_dir() == root / "anchors"
    assert storage.labels_dir() == root / "labels"
    assert storage.file_dir("fh") == root / "fh"
    assert storage.true_id_dir("fh", "tid") == root / "fh" / "tid"


def test_anchor_meta_round_trip():
    meta = AnchorMeta(file="a.txt", anchor="x\ny", hash="00ff", line_range=(2, 3))
    text = meta.to_json()
    assert json.loads(text)["line_range"] == [2, 3]
    assert AnchorMeta.from_json(text) == meta


def test_anchor_meta_malformed():
    with pytest.raises(ValueError):
        AnchorMeta.from_json('{"file": "a", "anchor": "b", "hash": "c"}')
    with pytest.raises(ValueError):
        AnchorMeta.from_json("not json")


def test_buffer_meta_round_trip_and_null_parent():
    meta = BufferMeta(true_id="t", parent_true_id=None, scope_hash="s", anchor="def f")
    text = meta.to_json()
    assert json.loads(text)["parent_true_id"] is None
    assert BufferMeta.from_json(text) == meta
    nested = BufferMeta(true_id="c", parent_true_id="t", scope_hash="s2", anchor="x")
    assert BufferMeta.from_json(nested.to_json()) == nested


def test_buffer_meta_missing_parent_defaults_to_none():
    meta = BufferMeta.from_json('{"true_id": "t", "scope_hash": "s", "anchor": "a"}')
    assert meta.parent_true_id is None


def test_buffer_meta_malformed():
    with pytest.raises(ValueError):
        BufferMeta.from_json('{"true_id": 5, "scope_hash": "s", "anchor": "a"}')


def test_save_anchor_metadata_and_invalidate():
    meta = AnchorMeta(file="f", anchor="A", hash="abc", line_range=(1, 1))
    storage.save_anchor_metadata(meta)
    path = storage.anchors_dir() / "abc.json"
    assert AnchorMeta.from_json(path.read_text()) == meta
    storage.invalidate_anchor("abc")
    assert not path.exists()
    storage.invalidate_anchor("abc")
    assert not path.exists()


def test_label_mapping_round_trip_and_idempotent():
    storage.save_label_mapping("greet", "tid1")
    assert storage.load_label_target("greet") == "tid1"
    storage.save_label_mapping("greet", "tid1")
    assert storage.load_label_target("greet") == "tid1"


def test_label_collision_raises_label_exists():
    storage.save_label_mapping("func", "tid1")
    with pytest.raises(AnchorScopeError) as info:
        storage.save_label_mapping("func", "tid2")
    assert info.value.spec() == "LABEL_EXISTS"
    assert storage.load_label_target("func") == "tid1"


def test_corrupted_label():
    storage.labels_dir().mkdir(parents=True)
    (storage.labels_dir() / "bad.json").write_text("{oops")
    with pytest.raises(AnchorScopeError) as info:
        storage.load_label_target("bad")
    assert info.value.kind is ErrorKind.LABEL_MAPPING_CORRUPTED
    assert info.value.spec() == "IO_ERROR: label mapping corrupted"
    with pytest.raises(AnchorScopeError) as info:
        storage.save_label_mapping("bad", "tid")
    assert info.value.kind is ErrorKind.LABEL_MAPPING_CORRUPTED


def test_missing_label_is_file_not_found():
    with pytest.raises(AnchorScopeError) as info:
        storage.load_label_target("nonexistent_label")
    assert info.value.spec() == "IO_ERROR: file not found"


def test_invalidate_label():
    storage.save_label_mapping("greet", "tid1")
    storage.invalidate_label("greet")
    assert not (storage.labels_dir() / "greet.json").exists()
    with pytest.raises(AnchorScopeError):
        storage.load_label_target("greet")


def test_file_content_and_source_path():
    storage.save_file_content("fh", b"hello\n")
    storage.save_source_path("fh", "/work/a.txt")
    assert (storage.file_dir("fh") / "content").read_bytes() == b"hello\n"
    assert storage.load_source_path("fh") == "/work/a.txt"


def test_missing_source_path():
    with pytest.raises(AnchorScopeError) as info:
        storage.load_source_path("nohash")
    assert info.value.kind is ErrorKind.FILE_NOT_FOUND


def test_buffer_and_scope_content_share_location():
    storage.save_buffer_content("fh", "tid", b"one")
    path = storage.true_id_dir("fh", "tid") / "content"
    assert path.read_bytes() == b"one"
    storage.save_scope_content("fh", "tid", b"two")
    assert path.read_bytes() == b"two"


def test_save_buffer_metadata():
    meta = BufferMeta(true_id="tid", parent_true_id=None, scope_hash="s", anchor="a")
    storage.save_buffer_metadata("fh", "tid", meta)
    text = (storage.true_id_dir("fh", "tid") / "metadata.json").read_text()
    assert BufferMeta.from_json(text) == meta


def test_replacement_content():
    with pytest.raises(AnchorScopeError) as info:
        storage.load_replacement_content("fh", "tid")
    assert info.value.kind is ErrorKind.FILE_NOT_FOUND
    directory = storage.true_id_dir("fh", "tid")
    directory.mkdir(parents=True)
    (directory / "replacement").write_bytes(b"new body")
    assert storage.load_replacement_content("fh", "tid") == b"new body"


def test_invalidate_true_id_hierarchy_removes_flat_and_nested():
    storage.save_buffer_content("fh", "tid", b"outer")
    nested = storage.file_dir("fh") / "parent" / "tid" / "child"
    nested.mkdir(parents=True)
    (nested / "content").write_bytes(b"inner")
    storage.save_buffer_content("fh", "other", b"keep")

    storage.invalidate_true_id_hierarchy("fh", "tid")

    assert not storage.true_id_dir("fh", "tid").exists()
    assert not (storage.file_dir("fh") / "parent" / "tid").exists()
    assert (storage.file_dir("fh") / "parent").is_dir()
    assert (storage.true_id_dir("fh", "other") / "content").read_bytes() == b"keep"


def test_invalidate_true_id_hierarchy_missing_file_dir():
    storage.invalidate_true_id_hierarchy("absent", "tid")
    assert not storage.file_dir("absent").exists()
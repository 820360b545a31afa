"""Tests for building tree objects from the index."""

import random

import pytest

from cairn.errors import InvalidPathError, MalformedObjectError
from cairn.index import IndexEntry
from cairn.objects import ObjectStore
from cairn.tree import EntryKind, Tree, TreeBuilder, iter_tree, read_tree, split_path


@pytest.fixture
def store(tmp_path):
    return ObjectStore(tmp_path)


def staged(store, files: dict[str, str]) -> list[IndexEntry]:
    """Store blobs and return matching index entries."""
    entries = []
    for path, content in files.items():
        object_id = store.put(content.encode())
        entries.append(IndexEntry(path=path, object_id=object_id, size=len(content), mtime=0))
    return entries


def test_empty_index_builds_empty_tree(store):
    tree_id = TreeBuilder(store).build_from_index([])
    
    assert store.read(tree_id) == b""
    assert read_tree(store, tree_id).entries == []


def test_builds_nested_hierarchy(store):
    entries = staged(store, {"a.txt": "hi", "dir/b.txt": "yo"})
    
    root = read_tree(store, TreeBuilder(store).build_from_index(entries))
    
    assert [(e.name, e.kind) for e in root.entries] == [
        ("a.txt", EntryKind.BLOB),
        ("dir", EntryKind.TREE),
    ]
    subtree = read_tree(store, root.get("dir").object_id)
    assert [(e.name, e.kind) for e in subtree.entries] == [("b.txt", EntryKind.BLOB)]
    assert store.read(subtree.entries[0].object_id) == b"yo"
    assert root.get("dir").mode == "040000"


def test_deeply_nested_directories(store):
    entries = staged(store, {"a/b/c/d.txt": "deep", "a/top.txt": "top"})
    tree_id = TreeBuilder(store).build_from_index(entries)
    
    files = dict(iter_tree(store, tree_id))
    
    assert sorted(files) == ["a/b/c/d.txt", "a/top.txt"]
    assert store.read(files["a/b/c/d.txt"].object_id) == b"deep"


def test_same_prefix_names_are_separate_directories(store):
    """'ab' and 'a' share a string prefix but are unrelated directories."""
    entries = staged(store, {"a/x.txt": "1", "ab/y.txt": "2", "a.txt": "3"})
    root = read_tree(store, TreeBuilder(store).build_from_index(entries))
    
    assert [e.name for e in root.entries] == ["a", "a.txt", "ab"]
    assert [e.name for e in read_tree(store, root.get("a").object_id).entries] == ["x.txt"]


def test_order_independent(store):
    """Input order never changes the root id."""
    files = {f"d{i % 3}/f{i}.txt": str(i) for i in range(12)}
    files.update({"root.txt": "r", "d1/sub/leaf.txt": "leaf"})
    entries = staged(store, files)
    builder = TreeBuilder(store)
    
    expected = builder.build_from_index(entries)
    for seed in range(5):
        shuffled = entries[:]
        random.Random(seed).shuffle(shuffled)
        assert builder.build_from_index(shuffled) == expected


def test_identical_subdirectories_share_a_tree(store):
    builder = TreeBuilder(store)
    first = read_tree(store, builder.build_from_index(
        staged(store, {"lib/util.txt": "u", "lib/core.txt": "c", "README": "one"})
    ))
    second = read_tree(store, builder.build_from_index(
        staged(store, {"vendor/lib/util.txt": "u", "vendor/lib/core.txt": "c", "other": "two"})
    ))
    vendor = read_tree(store, second.get("vendor").object_id)
    
    assert first.get("lib").object_id == vendor.get("lib").object_id


def test_tree_id_changes_with_content(store):
    builder = TreeBuilder(store)
    one = builder.build_from_index(staged(store, {"a/f.txt": "one"}))
    two = builder.build_from_index(staged(store, {"a/f.txt": "two"}))
    
    assert one != two


def test_file_directory_conflict(store):
    entries = staged(store, {"a": "file", "a/b.txt": "nested"})
    
    with pytest.raises(InvalidPathError):
        TreeBuilder(store).build_from_index(entries)


@pytest.mark.parametrize("path", ["/abs.txt", "a//b.txt", "a/../b.txt", "./a.txt", ""])
def test_split_path_rejects_invalid(path):
    with pytest.raises(InvalidPathError):
        split_path(path)


def test_split_path():
    assert split_path("a/b/c.txt") == ["a", "b", "c.txt"]
    assert split_path("c.txt") == ["c.txt"]


def test_serialization_format(store):
    entries = staged(store, {"b.txt": "b", "a.txt": "a"})
    tree_id = TreeBuilder(store).build_from_index(entries)
    
    lines = store.read(tree_id).decode().splitlines()
    
    assert lines == [
        f"100644 blob {store.put(b'a')}\ta.txt",
        f"100644 blob {store.put(b'b')}\tb.txt",
    ]


def test_parse_names_with_spaces():
    data = b"100644 blob " + b"a" * 40 + b"\tmy file.txt\n"
    
    tree = Tree.parse(data)
    
    assert tree.entries[0].name == "my file.txt"


@pytest.mark.parametrize("data", [
    b"not a tree entry\n",
    b"100644 blob abc\n",
    b"100644 thing " + b"a" * 40 + b"\tname\n",
    b"\xff\xfe",
])
def test_parse_malformed_tree(data):
    with pytest.raises(MalformedObjectError):
        Tree.parse(data, object_id="deadbeef")


@pytest.mark.parametrize("name", ["note\u2028x.txt", "form\x0cfeed.txt", "a\rb.txt", "nel\x85.txt"])
def test_names_with_unicode_line_separators_round_trip(store, name):
    entries = staged(store, {name: "content", f"dir/{name}": "nested"})
    tree_id = TreeBuilder(store).build_from_index(entries)
    
    root = read_tree(store, tree_id)
    
    assert sorted(e.name for e in root.entries) == sorted(["dir", name])
    assert sorted(path for path, _ in iter_tree(store, tree_id)) == sorted([name, f"dir/{name}"])

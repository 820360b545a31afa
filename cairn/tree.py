"""Tree objects and the index-to-tree builder.

A tree is the content-addressed listing of one directory. Each line of a
serialized tree is::

    <mode> <kind> <object id>\t<name>

with entries sorted by name, so two directories with the same contents
always serialize, and therefore hash, identically.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator

from cairn.errors import InvalidPathError, MalformedObjectError
from cairn.index import REGULAR_FILE_MODE, IndexEntry
from cairn.objects import ObjectStore

logger = logging.getLogger(__name__)

TREE_MODE = "040000"


class EntryKind(str, Enum):
    """What a tree entry points at."""
    
    BLOB = "blob"
    TREE = "tree"


@dataclass(frozen=True)
class TreeEntry:
    """A named reference from a tree to a blob or subtree."""
    
    name: str
    object_id: str
    mode: str
    kind: EntryKind
    
    def serialize(self) -> str:
        return f"{self.mode} {self.kind.value} {self.object_id}\t{self.name}\n"


def _sort_key(entry: TreeEntry) -> bytes:
    return entry.name.encode("utf-8")


@dataclass
class Tree:
    """An ordered list of tree entries."""
    
    entries: list[TreeEntry] = field(default_factory=list)
    object_id: str | None = None
    
    def serialize(self) -> bytes:
        """Serialize entries in name order."""
        return "".join(
            entry.serialize() for entry in sorted(self.entries, key=_sort_key)
        ).encode("utf-8")
    
    @classmethod
    def parse(cls, data: bytes, object_id: str | None = None) -> "Tree":
        """Parse a serialized tree.
        
        Raises:
            MalformedObjectError: If a line is not a valid tree entry
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedObjectError(f"Tree {object_id} is not UTF-8") from e
        
        lines = text.split("\n")
        if lines[-1] == "":
            lines.pop()
        
        entries = []
        for line in lines:
            header, sep, name = line.partition("\t")
            fields = header.split(" ")
            if not sep or not name or len(fields) != 3:
                raise MalformedObjectError(f"Bad tree entry in {object_id}: {line!r}")
            
            mode, kind, entry_id = fields
            try:
                entry_kind = EntryKind(kind)
            except ValueError as e:
                raise MalformedObjectError(f"Unknown entry kind {kind!r} in {object_id}") from e
            
            entries.append(TreeEntry(name=name, object_id=entry_id, mode=mode, kind=entry_kind))
        
        return cls(entries=entries, object_id=object_id)
    
    def get(self, name: str) -> TreeEntry | None:
        """Find an entry by name."""
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None


@dataclass
class _DirNode:
    """One directory level while grouping staged paths."""
    
    files: dict[str, IndexEntry] = field(default_factory=dict)
    dirs: dict[str, "_DirNode"] = field(default_factory=dict)


def split_path(path: str) -> list[str]:
    """Split a repository-relative path into its segments.
    
    Raises:
        InvalidPathError: For absolute paths or empty, ``.`` or ``..`` segments
    """
    if path.startswith("/"):
        raise InvalidPathError(f"Staged path must be relative: {path!r}")
    
    segments = path.split("/")
    for segment in segments:
        if segment in ("", ".", "..") or "\n" in segment:
            raise InvalidPathError(f"Invalid path segment in {path!r}")
    
    return segments


class TreeBuilder:
    """Builds a hierarchy of tree objects from staged index entries."""
    
    def __init__(self, store: ObjectStore):
        self.store = store
    
    def build_from_index(self, entries: Iterable[IndexEntry]) -> str:
        """Write one tree per directory and return the root tree id.
        
        Subtrees are stored before their parents because a parent embeds
        each child's id. Identical subdirectories collapse to one object.
        An empty entry set yields the empty tree.
        
        Args:
            entries: Staged records, in any order
            
        Returns:
            Id of the root tree
        """
        root = self._group(entries)
        tree_id = self._write(root)
        logger.debug("Built root tree %s", tree_id[:8])
        return tree_id
    
    def _group(self, entries: Iterable[IndexEntry]) -> _DirNode:
        root = _DirNode()
        
        for entry in entries:
            *dir_names, file_name = split_path(entry.path)
            
            node = root
            for name in dir_names:
                if name in node.files:
                    raise InvalidPathError(f"{entry.path!r} conflicts with staged file {name!r}")
                node = node.dirs.setdefault(name, _DirNode())
            
            if file_name in node.dirs:
                raise InvalidPathError(f"{entry.path!r} conflicts with a staged directory")
            node.files[file_name] = entry
        
        return root
    
    def _write(self, node: _DirNode) -> str:
        tree = Tree()
        
        for name, child in node.dirs.items():
            tree.entries.append(
                TreeEntry(name=name, object_id=self._write(child), mode=TREE_MODE, kind=EntryKind.TREE)
            )
        
        for name, entry in node.files.items():
            tree.entries.append(
                TreeEntry(
                    name=name,
                    object_id=entry.object_id,
                    mode=entry.mode or REGULAR_FILE_MODE,
                    kind=EntryKind.BLOB,
                )
            )
        
        tree.object_id = self.store.put(tree.serialize())
        return tree.object_id


def read_tree(store: ObjectStore, tree_id: str) -> Tree:
    """Load and parse a tree object."""
    return Tree.parse(store.read(tree_id), object_id=tree_id)


def iter_tree(store: ObjectStore, tree_id: str, prefix: str = "") -> Iterator[tuple[str, TreeEntry]]:
    """Yield ``(path, entry)`` for every blob reachable from a tree.
    
    Directories are visited depth-first in name order.
    """
    tree = read_tree(store, tree_id)
    
    for entry in sorted(tree.entries, key=_sort_key):
        path = f"{prefix}{entry.name}"
        if entry.kind is EntryKind.TREE:
            yield from iter_tree(store, entry.object_id, f"{path}/")
        else:
            yield path, entry

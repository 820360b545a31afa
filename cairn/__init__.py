"""Cairn - Content-addressed version control storage."""

__version__ = "1.0.0"

from cairn.commit import Commit, create_commit, load_commit
from cairn.index import Index, IndexEntry
from cairn.objects import ObjectStore
from cairn.refs import RefStore
from cairn.repository import Repository
from cairn.tree import TreeBuilder

__all__ = [
    "Commit",
    "create_commit",
    "load_commit",
    "Index",
    "IndexEntry",
    "ObjectStore",
    "RefStore",
    "Repository",
    "TreeBuilder",
]

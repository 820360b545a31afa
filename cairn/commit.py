"""Commit objects for Cairn."""

import logging
from dataclasses import dataclass
from typing import Iterator

from cairn.errors import MalformedObjectError
from cairn.objects import ObjectStore

logger = logging.getLogger(__name__)

FIELD_COUNT = 5


@dataclass(frozen=True)
class Commit:
    """A snapshot of the root tree plus history metadata.
    
    Serialized as five newline-separated fields: parent, tree, author,
    timestamp and message. The message is last and may span lines. A root
    commit writes an empty parent field.
    """
    
    object_id: str
    parent_id: str | None
    tree_id: str
    author: str
    timestamp: int
    message: str
    
    @staticmethod
    def serialize_fields(
        parent_id: str | None,
        tree_id: str,
        author: str,
        timestamp: int,
        message: str,
    ) -> bytes:
        return "\n".join(
            [parent_id or "", tree_id, author, str(timestamp), message]
        ).encode("utf-8")
    
    def serialize(self) -> bytes:
        return self.serialize_fields(
            self.parent_id, self.tree_id, self.author, self.timestamp, self.message
        )
    
    @classmethod
    def parse(cls, object_id: str, data: bytes) -> "Commit":
        """Parse a serialized commit.
        
        Raises:
            MalformedObjectError: If fields are missing or invalid
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedObjectError(f"Commit {object_id} is not UTF-8") from e
        
        parts = text.split("\n", FIELD_COUNT - 1)
        if len(parts) < FIELD_COUNT:
            raise MalformedObjectError(
                f"Commit {object_id} has {len(parts)} fields, expected {FIELD_COUNT}"
            )
        
        parent_id, tree_id, author, timestamp, message = parts
        if not tree_id:
            raise MalformedObjectError(f"Commit {object_id} has no tree")
        
        try:
            timestamp_value = int(timestamp)
        except ValueError as e:
            raise MalformedObjectError(f"Commit {object_id} has bad timestamp {timestamp!r}") from e
        
        return cls(
            object_id=object_id,
            parent_id=parent_id or None,
            tree_id=tree_id,
            author=author,
            timestamp=timestamp_value,
            message=message,
        )
    
    @property
    def summary(self) -> str:
        """First line of the message."""
        return self.message.splitlines()[0] if self.message else ""


def create_commit(
    store: ObjectStore,
    parent_id: str | None,
    tree_id: str,
    author: str,
    timestamp: int,
    message: str,
) -> Commit:
    """Store a new commit and return it.
    
    Args:
        store: Object store to write into
        parent_id: Previous commit id, or None for a root commit
        tree_id: Root tree of the snapshot
        author: Author line, e.g. ``Name <email>``
        timestamp: Seconds since the epoch
        message: Commit message, may contain newlines
        
    Returns:
        The stored commit, including its id
    """
    for name, value in (("parent", parent_id or ""), ("tree", tree_id), ("author", author)):
        if "\n" in value:
            raise ValueError(f"Commit {name} must be a single line")
    if not tree_id:
        raise ValueError("Commit requires a tree id")
    
    data = Commit.serialize_fields(parent_id, tree_id, author, int(timestamp), message)
    object_id = store.put(data)
    logger.debug("Created commit %s on tree %s", object_id[:8], tree_id[:8])
    
    return Commit(
        object_id=object_id,
        parent_id=parent_id or None,
        tree_id=tree_id,
        author=author,
        timestamp=int(timestamp),
        message=message,
    )


def load_commit(store: ObjectStore, commit_id: str) -> Commit:
    """Load a commit by id."""
    return Commit.parse(commit_id, store.read(commit_id))


def iter_history(store: ObjectStore, commit_id: str | None) -> Iterator[Commit]:
    """Walk the parent chain from *commit_id*, newest first."""
    seen = set()
    
    while commit_id and commit_id not in seen:
        seen.add(commit_id)
        commit = load_commit(store, commit_id)
        yield commit
        commit_id = commit.parent_id

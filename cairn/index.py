"""Staging index for Cairn repositories."""

import logging
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from cairn.errors import InvalidPathError, MalformedObjectError, NotFoundError
from cairn.objects import ObjectStore
from cairn.util import atomic_write, relative_to_root

logger = logging.getLogger(__name__)

REGULAR_FILE_MODE = "100644"
FIELD_SEPARATOR = "|"


@dataclass(frozen=True)
class IndexEntry:
    """A staged file: where it lives and which blob holds its content."""
    
    path: str
    object_id: str
    size: int
    mtime: int
    mode: str = REGULAR_FILE_MODE
    
    def serialize(self) -> str:
        """Render as a single ledger line (without newline)."""
        return FIELD_SEPARATOR.join(
            [self.path, self.object_id, str(self.size), str(self.mtime), self.mode]
        )
    
    @classmethod
    def parse(cls, line: str) -> "IndexEntry":
        """Parse a ledger line.
        
        The path is the first field and may itself contain the separator,
        so the line is split from the right.
        
        Raises:
            MalformedObjectError: If the line does not hold five valid fields
        """
        parts = line.rstrip("\n").rsplit(FIELD_SEPARATOR, 4)
        if len(parts) != 5:
            raise MalformedObjectError(f"Expected 5 fields, got {len(parts)}")
        
        path, object_id, size, mtime, mode = parts
        if not path or not object_id:
            raise MalformedObjectError("Empty path or object id")
        
        try:
            return cls(
                path=path,
                object_id=object_id,
                size=int(size),
                mtime=int(mtime),
                mode=mode,
            )
        except ValueError as e:
            raise MalformedObjectError(f"Bad numeric field: {e}") from e


class Index:
    """Repository staging index manager."""
    
    def __init__(self, repo_root: Path, store: ObjectStore | None = None):
        """Initialize index for a repository."""
        self.repo_root = repo_root
        self.index_path = repo_root / ".cairn" / "index"
        self.store = store or ObjectStore(repo_root)
        self.entries: dict[str, IndexEntry] = {}
    
    def load(self) -> None:
        """Load index from disk.
        
        A missing ledger means an empty index. Lines that cannot be parsed
        are skipped with a warning.
        """
        self.entries = {}
        
        if not self.index_path.exists():
            return
        
        with open(self.index_path, encoding="utf-8", newline="\n") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    entry = IndexEntry.parse(line)
                except MalformedObjectError as e:
                    logger.warning(
                        "Skipping malformed index line %d: %r (%s)",
                        lineno, line.rstrip("\n"), e,
                    )
                    continue
                self.entries[entry.path] = entry
    
    def save(self) -> None:
        """Save index to disk, rewriting the whole ledger."""
        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        
        content = "".join(
            entry.serialize() + "\n" for entry in self
        )
        atomic_write(self.index_path, content)
    
    def _relative_path(self, path: Path | str) -> str:
        """Normalize a path to the repository-relative POSIX form."""
        rel_path = relative_to_root(self.repo_root, Path(path))
        
        if rel_path is None:
            raise InvalidPathError(f"Path is outside the repository: {path}")
        if rel_path == Path("."):
            raise InvalidPathError("Cannot stage the repository root")
        if rel_path.parts[0] == ".cairn":
            raise InvalidPathError(f"Cannot stage repository metadata: {path}")
        if "\n" in rel_path.as_posix() or "\r" in rel_path.as_posix():
            raise InvalidPathError(f"Path contains a line break: {path!r}")
        
        return rel_path.as_posix()
    
    def stage(self, path: Path | str) -> IndexEntry:
        """Stage a file, storing its content as a blob.
        
        Args:
            path: File path, absolute or relative to the repository root
            
        Returns:
            The new index entry
            
        Raises:
            NotFoundError: If the file does not exist
            InvalidPathError: If the path is not a regular file inside the
                repository
        """
        rel_path = self._relative_path(path)
        file_path = self.repo_root / rel_path
        
        try:
            st = file_path.stat()
        except FileNotFoundError as e:
            raise NotFoundError(f"File not found: {path}") from e
        
        if not stat.S_ISREG(st.st_mode):
            raise InvalidPathError(f"Not a regular file: {path}")
        
        object_id = self.store.put_file(file_path)
        
        entry = IndexEntry(
            path=rel_path,
            object_id=object_id,
            size=st.st_size,
            mtime=st.st_mtime_ns // 1_000_000,
        )
        self.entries[rel_path] = entry
        self.save()
        
        logger.debug("Staged %s as %s", rel_path, object_id[:8])
        return entry
    
    def unstage(self, path: Path | str) -> bool:
        """Remove a path from the index.
        
        Unstaging a path that is not staged is not an error.
        
        Returns:
            True if an entry was removed
        """
        rel_path = self._relative_path(path)
        removed = self.entries.pop(rel_path, None) is not None
        self.save()
        
        if removed:
            logger.debug("Unstaged %s", rel_path)
        return removed
    
    def get_entry(self, path: str) -> IndexEntry | None:
        """Get index entry by repository-relative path."""
        return self.entries.get(path)
    
    def paths(self) -> list[str]:
        """Staged paths in sorted order."""
        return sorted(self.entries)
    
    def __iter__(self) -> Iterator[IndexEntry]:
        for path in self.paths():
            yield self.entries[path]
    
    def __len__(self) -> int:
        return len(self.entries)
    
    def __contains__(self, path: object) -> bool:
        return path in self.entries

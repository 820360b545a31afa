"""HEAD and branch references."""

import logging
from pathlib import Path
from typing import NamedTuple

from cairn.errors import InvalidPathError, MalformedObjectError, NotFoundError
from cairn.util import atomic_write

logger = logging.getLogger(__name__)

SYMBOLIC_PREFIX = "ref:"
HEADS_PREFIX = "refs/heads/"


class HeadRef(NamedTuple):
    """Contents of HEAD: a branch ref path, or a bare commit id."""
    
    symbolic: bool
    value: str | None


class RefStore:
    """Reads and moves HEAD and branch pointers."""
    
    def __init__(self, repo_root: Path):
        self.repo_root = repo_root
        self.repo_dir = repo_root / ".cairn"
        self.head_path = self.repo_dir / "HEAD"
    
    def _ref_path(self, ref: str) -> Path:
        path = (self.repo_dir / ref).resolve()
        try:
            path.relative_to(self.repo_dir.resolve())
        except ValueError:
            raise InvalidPathError(f"Reference escapes repository: {ref}") from None
        return path
    
    @staticmethod
    def _read(path: Path) -> str | None:
        if not path.exists():
            return None
        value = path.read_text(encoding="utf-8").strip()
        return value or None
    
    def read_head(self) -> HeadRef:
        """Read HEAD without following it.
        
        Raises:
            NotFoundError: If HEAD does not exist
        """
        if not self.head_path.exists():
            raise NotFoundError(f"No HEAD at {self.head_path}")
        
        value = self._read(self.head_path)
        if value and value.startswith(SYMBOLIC_PREFIX):
            target = value[len(SYMBOLIC_PREFIX):].strip()
            if not target:
                raise MalformedObjectError("HEAD is a symbolic ref with no target")
            return HeadRef(symbolic=True, value=target)
        
        return HeadRef(symbolic=False, value=value)
    
    def resolve_head(self) -> str | None:
        """Return the commit HEAD points at, or None if there are no commits yet.
        
        Follows at most one symbolic reference.
        
        Raises:
            MalformedObjectError: If the branch HEAD names is itself symbolic
        """
        head = self.read_head()
        if not head.symbolic:
            return head.value
        
        value = self._read(self._ref_path(head.value))
        if value is None:
            return None
        
        if value.startswith(SYMBOLIC_PREFIX):
            raise MalformedObjectError(f"Reference {head.value} is symbolic; nested symbolic refs are not allowed")
        
        return value
    
    def update_head(self, commit_id: str) -> None:
        """Move the current position to *commit_id*.
        
        On a branch the branch file is updated; with a detached HEAD, HEAD
        itself is overwritten.
        """
        head = self.read_head() if self.head_path.exists() else HeadRef(False, None)
        
        if head.symbolic:
            path = self._ref_path(head.value)
            path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(path, f"{commit_id}\n")
            logger.debug("Moved %s to %s", head.value, commit_id[:8])
        else:
            atomic_write(self.head_path, f"{commit_id}\n")
            logger.debug("Moved detached HEAD to %s", commit_id[:8])
    
    def set_head_branch(self, branch: str) -> None:
        """Point HEAD at a branch (the branch need not exist yet)."""
        self._ref_path(HEADS_PREFIX + branch)
        self.repo_dir.mkdir(parents=True, exist_ok=True)
        atomic_write(self.head_path, f"{SYMBOLIC_PREFIX} {HEADS_PREFIX}{branch}\n")
    
    def current_branch(self) -> str | None:
        """Name of the checked-out branch, or None when detached."""
        head = self.read_head()
        if head.symbolic and head.value.startswith(HEADS_PREFIX):
            return head.value[len(HEADS_PREFIX):]
        return None
    
    def read_branch(self, branch: str) -> str | None:
        """Commit id a branch points at, or None if it has no commits."""
        return self._read(self._ref_path(HEADS_PREFIX + branch))
    
    def list_branches(self) -> list[str]:
        """All branch names, including nested ones like ``feature/x``."""
        heads_dir = self.repo_dir / "refs" / "heads"
        
        if not heads_dir.is_dir():
            return []
        
        return sorted(
            path.relative_to(heads_dir).as_posix()
            for path in heads_dir.rglob("*")
            if path.is_file() and not path.name.endswith(".tmp")
        )

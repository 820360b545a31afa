"""Repository facade tying the object store, index and refs together."""

import logging
import time
from pathlib import Path

from cairn.commit import Commit, create_commit, iter_history
from cairn.config import GlobalConfig, RepoConfig, resolve_identity
from cairn.errors import AlreadyExistsError, RepositoryNotFoundError
from cairn.index import Index
from cairn.objects import ObjectStore
from cairn.refs import RefStore
from cairn.tree import TreeBuilder

logger = logging.getLogger(__name__)


class Repository:
    """A Cairn repository rooted at an explicit directory.

    Components read their state from disk when asked, so a Repository can be
    kept around between operations without going stale.
    """
    
    def __init__(self, root: Path):
        self.root = Path(root)
        self.repo_dir = self.root / ".cairn"
        self.store = ObjectStore(self.root)
        self.refs = RefStore(self.root)
    
    @classmethod
    def init(cls, root: Path, default_branch: str | None = None) -> "Repository":
        """Create the repository layout under *root*.
        
        Raises:
            AlreadyExistsError: If *root* already contains a repository
        """
        root = Path(root)
        repo_dir = root / ".cairn"
        
        if repo_dir.exists():
            raise AlreadyExistsError(f"Repository already exists at {repo_dir}")
        
        (repo_dir / "objects").mkdir(parents=True)
        (repo_dir / "refs" / "heads").mkdir(parents=True)
        (repo_dir / "index").touch()
        
        config = RepoConfig(repo_root=root)
        if default_branch:
            config.default_branch = default_branch
        config.save()
        
        repo = cls(root)
        repo.refs.set_head_branch(config.default_branch)
        
        logger.info("Initialized empty Cairn repository in %s", repo_dir)
        return repo
    
    @classmethod
    def find(cls, start: Path) -> "Repository":
        """Locate the repository containing *start*.
        
        Raises:
            RepositoryNotFoundError: If no parent directory holds ``.cairn``
        """
        path = Path(start).resolve()
        
        for candidate in [path, *path.parents]:
            if (candidate / ".cairn").is_dir():
                return cls(candidate)
        
        raise RepositoryNotFoundError(f"Not a Cairn repository: {start}")
    
    @property
    def config(self) -> RepoConfig:
        return RepoConfig.load(self.root)
    
    def load_index(self) -> Index:
        """Fresh index loaded from disk."""
        index = Index(self.root, self.store)
        index.load()
        return index
    
    def write_tree(self) -> str:
        """Build trees for everything currently staged."""
        index = self.load_index()
        return TreeBuilder(self.store).build_from_index(index)
    
    def commit(
        self,
        message: str,
        author: str | None = None,
        timestamp: int | None = None,
    ) -> Commit:
        """Record the staged snapshot and advance HEAD.
        
        Args:
            message: Commit message
            author: Author line; defaults to the configured identity
            timestamp: Seconds since the epoch; defaults to now
            
        Returns:
            The new commit
        """
        if author is None:
            author = resolve_identity(self.config, GlobalConfig.load())
        if timestamp is None:
            timestamp = int(time.time())
        
        tree_id = self.write_tree()
        parent_id = self.refs.resolve_head()
        
        commit = create_commit(self.store, parent_id, tree_id, author, timestamp, message)
        self.refs.update_head(commit.object_id)
        
        logger.info("[%s %s] %s", self.refs.current_branch() or "detached", commit.object_id[:7], commit.summary)
        return commit
    
    def log(self, limit: int | None = None) -> list[Commit]:
        """History from HEAD, newest first."""
        commits = []
        
        for commit in iter_history(self.store, self.refs.resolve_head()):
            if limit is not None and len(commits) >= limit:
                break
            commits.append(commit)
        
        return commits

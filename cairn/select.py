"""File selection for staging."""

from pathlib import Path

import pathspec

from cairn.errors import InvalidPathError, NotFoundError
from cairn.util import relative_to_root

ALWAYS_IGNORED = [".cairn/"]


def create_pathspec(patterns: list[str]) -> pathspec.PathSpec:
    """Create a PathSpec from gitignore-style patterns."""
    return pathspec.PathSpec.from_lines("gitwildmatch", patterns)


def select_files(
    root: Path,
    paths: list[Path],
    ignore_patterns: list[str] | None = None,
) -> list[Path]:
    """Expand files and directories into the files to stage.
    
    Directories are walked recursively and filtered through the ignore
    patterns. Files named explicitly are only skipped when they are
    repository metadata.
    
    Args:
        root: Repository root
        paths: Paths given by the user, absolute or relative to *root*
        ignore_patterns: Gitignore-style patterns
        
    Returns:
        Sorted, de-duplicated repository-relative file paths
        
    Raises:
        NotFoundError: If a given path does not exist
        InvalidPathError: If a given path is outside the repository
    """
    ignore_spec = create_pathspec(ALWAYS_IGNORED + (ignore_patterns or []))
    metadata_spec = create_pathspec(ALWAYS_IGNORED)
    
    selected = set()
    
    for path in paths:
        rel_path = relative_to_root(root, path)
        if rel_path is None:
            raise InvalidPathError(f"Path is outside the repository: {path}")
        
        full_path = root / rel_path
        if not full_path.exists():
            raise NotFoundError(f"Path did not match any files: {path}")
        
        if full_path.is_file():
            if not metadata_spec.match_file(rel_path.as_posix()):
                selected.add(rel_path)
            continue
        
        for file_path in full_path.rglob("*"):
            if not file_path.is_file():
                continue
            
            candidate = file_path.relative_to(root)
            if ignore_spec.match_file(candidate.as_posix()):
                continue
            
            selected.add(candidate)
    
    return sorted(selected)

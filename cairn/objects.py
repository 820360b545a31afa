"""Object store for Cairn repositories."""

import logging
import re
from pathlib import Path
from typing import BinaryIO

from cairn.errors import InvalidIdentifierError, NotFoundError, StorageIOError
from cairn.hasher import CHUNK_SIZE, digest, new_digest
from cairn.util import atomic_write, open_temp_sibling

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^[0-9a-f]+$")


class ObjectStore:
    """Content-addressed store for blobs, trees and commits.

    Objects live at ``.cairn/objects/<first 2 hex>/<remaining hex>`` and are
    immutable: writing an id that already exists is a no-op.
    """
    
    def __init__(self, repo_root: Path):
        """Initialize object store for a repository."""
        self.repo_root = repo_root
        self.store_path = repo_root / ".cairn" / "objects"
    
    def object_path(self, object_id: str) -> Path:
        """Get path for an object by id.
        
        Raises:
            InvalidIdentifierError: If the id cannot be split into shard
                prefix and file name, or is not lowercase hex
        """
        if not isinstance(object_id, str) or len(object_id) < 3:
            raise InvalidIdentifierError(f"Object id too short: {object_id!r}")
        if not _HEX_RE.match(object_id):
            raise InvalidIdentifierError(f"Object id is not hex: {object_id!r}")
        
        return self.store_path / object_id[:2] / object_id[2:]
    
    def exists(self, object_id: str) -> bool:
        """Check if an object exists."""
        return self.object_path(object_id).is_file()
    
    def put(self, content: bytes | str) -> str:
        """Store content and return its id.
        
        Text is stored as UTF-8. If the object is already present the write
        is skipped; the returned id is the same either way.
        """
        if isinstance(content, str):
            content = content.encode("utf-8")
        
        object_id = digest(content)
        path = self.object_path(object_id)
        
        if path.exists():
            logger.debug("Object %s already stored", object_id[:8])
            return object_id
        
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(path, content)
        except OSError as e:
            # Another writer stored the same content first
            if path.is_file():
                return object_id
            raise StorageIOError(f"Failed to write object {object_id}: {e}") from e
        
        logger.debug("Stored object %s (%d bytes)", object_id[:8], len(content))
        return object_id
    
    def put_file(self, src: Path) -> str:
        """Store a file's content without loading it into memory.
        
        The content is hashed while it is copied, so the stored bytes always
        match the returned id even if *src* changes meanwhile.
        
        Raises:
            NotFoundError: If *src* does not exist
        """
        try:
            source = open(src, "rb")
        except FileNotFoundError as e:
            raise NotFoundError(f"File not found: {src}") from e
        
        try:
            self.store_path.mkdir(parents=True, exist_ok=True)
            out, temp_path = open_temp_sibling(self.store_path / "incoming")
        except OSError as e:
            source.close()
            raise StorageIOError(f"Failed to stage object from {src}: {e}") from e
        
        try:
            sha = new_digest()
            with source, out:
                for chunk in iter(lambda: source.read(CHUNK_SIZE), b""):
                    sha.update(chunk)
                    out.write(chunk)
            
            object_id = sha.hexdigest()
            path = self.object_path(object_id)
            
            if path.exists():
                temp_path.unlink()
                logger.debug("Object %s already stored", object_id[:8])
                return object_id
            
            path.parent.mkdir(parents=True, exist_ok=True)
            try:
                temp_path.replace(path)
            except OSError:
                if not path.is_file():
                    raise
                temp_path.unlink(missing_ok=True)
                return object_id
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise StorageIOError(f"Failed to store {src}: {e}") from e
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise
        
        logger.debug("Stored object %s from %s", object_id[:8], src.name)
        return object_id
    
    def get(self, object_id: str) -> BinaryIO:
        """Open an object for reading.
        
        The caller owns the returned stream and should close it, typically
        with a ``with`` block.
        
        Raises:
            InvalidIdentifierError: If the id is malformed
            NotFoundError: If no such object is stored
        """
        path = self.object_path(object_id)
        
        try:
            return open(path, "rb")
        except FileNotFoundError as e:
            raise NotFoundError(f"Object not found: {object_id}") from e
    
    def read(self, object_id: str) -> bytes:
        """Read an object's full content."""
        with self.get(object_id) as f:
            return f.read()
    
    def list_objects(self) -> list[str]:
        """List all object ids in the store."""
        objects = []
        
        if not self.store_path.exists():
            return objects
        
        for path in self.store_path.glob("*/*"):
            if path.is_file() and not path.name.endswith(".tmp"):
                objects.append(path.parent.name + path.name)
        
        return sorted(objects)

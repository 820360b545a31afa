"""Error types for Cairn."""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories callers can branch on."""

    NOT_FOUND = "not_found"
    INVALID_IDENTIFIER = "invalid_identifier"
    MALFORMED_OBJECT = "malformed_object"
    IO_FAILURE = "io_failure"
    INVALID_PATH = "invalid_path"
    ALREADY_EXISTS = "already_exists"
    CONFIG = "config"


class CairnError(Exception):
    """Base class for all Cairn errors."""

    kind: ErrorKind = ErrorKind.IO_FAILURE


class NotFoundError(CairnError):
    """A path, object or reference does not exist."""

    kind = ErrorKind.NOT_FOUND


class InvalidIdentifierError(CairnError):
    """An object identifier is malformed."""

    kind = ErrorKind.INVALID_IDENTIFIER


class MalformedObjectError(CairnError):
    """Stored bytes could not be parsed into the expected object."""

    kind = ErrorKind.MALFORMED_OBJECT


class StorageIOError(CairnError):
    """A filesystem operation on repository storage failed."""

    kind = ErrorKind.IO_FAILURE


class InvalidPathError(CairnError):
    """A path cannot be tracked (outside the repository, not a file, ...)."""

    kind = ErrorKind.INVALID_PATH


class AlreadyExistsError(CairnError):
    """The repository or object being created is already there."""

    kind = ErrorKind.ALREADY_EXISTS


class RepositoryNotFoundError(NotFoundError):
    """No `.cairn` directory was found."""


class ConfigError(CairnError):
    """Configuration could not be read or contains an unknown key."""

    kind = ErrorKind.CONFIG

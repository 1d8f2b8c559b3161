"""Validation and normalization of directory paths and request fields."""

from dataclasses import dataclass
from enum import Enum

from ...models.base import BaseEnum
from ..errors import (
    CannotDeleteRootException,
    InvalidParameterException,
    InvalidPathException,
    LauncherException,
    MissingParameterException,
    MissingParametersException,
)


class RootKind(str, BaseEnum):
    """Namespace roots a path can be anchored at."""

    APP = "app"
    """Root private to the calling application."""

    DRIVE = "drive"
    """Root shared across applications, needs an explicit grant."""


class FileOrDirAction(str, BaseEnum):
    """Action of a move or copy request."""

    MOVE = "MOVE"
    COPY = "COPY"


class MutationKind(Enum):
    """How an operation uses its target path."""

    READ = "read"
    CREATE = "create"
    DELETE = "delete"
    MODIFY = "modify"
    MOVE_SOURCE = "move_source"
    MOVE_DESTINATION = "move_destination"


@dataclass(frozen=True)
class ValidatedPath:
    """A path that passed validation, split into segments.

    An empty tuple of parts addresses the root directory itself.
    """

    root: RootKind
    parts: tuple[str, ...]

    @property
    def is_root(self) -> bool:
        return not self.parts

    def __str__(self) -> str:
        return f"{self.root.value}:/" + "/".join(self.parts)


def normalize_path(raw_path: str | None) -> tuple[str, ...]:
    """Split a raw path into segments.

    Leading, trailing and repeated separators are dropped so `/`, `` and
    None all collapse to the root.
    """
    if not raw_path:
        return ()
    parts = []
    for part in raw_path.split("/"):
        if not part or part == ".":
            continue
        if part == "..":
            raise InvalidPathException()
        parts.append(part)
    return tuple(parts)


def resolve_root_kind(value: object, field: str = "rootPath") -> RootKind:
    """Resolve the root of a request, naming field in any error."""
    if value is None or value == "":
        raise MissingParameterException(field)
    try:
        return RootKind.from_value(value)
    except ValueError:
        raise InvalidParameterException(field) from None


def _root_error(mutation: MutationKind) -> LauncherException | None:
    if mutation == MutationKind.DELETE:
        return CannotDeleteRootException()
    if mutation in (
        MutationKind.CREATE,
        MutationKind.MODIFY,
        MutationKind.MOVE_SOURCE,
    ):
        return InvalidPathException()
    return None


def resolve(
    root_value: object,
    raw_path: object,
    mutation: MutationKind,
    *,
    root_field: str = "rootPath",
) -> ValidatedPath:
    """Validate a (root, path) pair for an operation.

    The root is checked before the path. Targeting the root itself is only
    allowed for reads and as a move or copy destination.
    """
    root = resolve_root_kind(root_value, root_field)
    if raw_path is not None and not isinstance(raw_path, str):
        raise InvalidPathException()
    parts = normalize_path(raw_path)
    if not parts and (err := _root_error(mutation)) is not None:
        raise err
    return ValidatedPath(root=root, parts=parts)


def validate_metadata(value: object) -> str | None:
    if value is not None and not isinstance(value, str):
        raise InvalidParameterException("metadata")
    return value


def validate_is_private(value: object) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise InvalidParameterException("isPrivate")
    return value


def validate_name(value: object) -> str | None:
    if value is not None and (not isinstance(value, str) or not value):
        raise InvalidParameterException("name")
    if value is not None and "/" in value:
        raise InvalidParameterException("name")
    return value


def validate_modify_fields(name: object, metadata: object) -> tuple[str | None, str | None]:
    """Validate the fields of a modify request, at least one is required."""
    checked_name = validate_name(name)
    checked_metadata = validate_metadata(metadata)
    if checked_name is None and checked_metadata is None:
        raise MissingParametersException()
    return checked_name, checked_metadata


def resolve_action(value: object) -> FileOrDirAction:
    """Resolve a move/copy action, defaulting to MOVE."""
    if value is None:
        return FileOrDirAction.MOVE
    if not isinstance(value, str):
        raise InvalidParameterException("action")
    try:
        return FileOrDirAction.from_value(value.upper())
    except ValueError:
        raise InvalidParameterException("action") from None


def require_fields(**fields: object) -> None:
    """Raise if any of the named fields is missing."""
    if any(value is None or value == "" for value in fields.values()):
        raise MissingParametersException()

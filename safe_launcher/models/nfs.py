"""NFS related API data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.mixins.json import DataClassJSONMixin

from ..network import DirectoryContents, DirectoryEntry, FileEntry


def format_timestamp(epoch_ms: int) -> str:
    """Format epoch milliseconds as an ISO 8601 UTC string."""
    return (
        datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


@dataclass
class DirectoryInfoVO(DataClassJSONMixin):
    """Attributes of a directory."""

    name: str
    metadata: str
    is_private: bool = field(metadata=field_options(alias="isPrivate"))
    is_versioned: bool = field(metadata=field_options(alias="isVersioned"))
    created_on: str = field(metadata=field_options(alias="createdOn"))
    modified_on: str = field(metadata=field_options(alias="modifiedOn"))

    class Config(BaseConfig):
        serialize_by_alias = True

    @classmethod
    def from_entry(cls, entry: DirectoryEntry) -> "DirectoryInfoVO":
        return cls(
            name=entry.name,
            metadata=entry.metadata,
            is_private=entry.is_private,
            is_versioned=entry.is_versioned,
            created_on=format_timestamp(entry.created_on),
            modified_on=format_timestamp(entry.modified_on),
        )


@dataclass
class FileInfoVO(DataClassJSONMixin):
    """Attributes of a file."""

    name: str
    size: int
    metadata: str
    created_on: str = field(metadata=field_options(alias="createdOn"))
    modified_on: str = field(metadata=field_options(alias="modifiedOn"))

    class Config(BaseConfig):
        serialize_by_alias = True

    @classmethod
    def from_entry(cls, entry: FileEntry) -> "FileInfoVO":
        return cls(
            name=entry.name,
            size=entry.size,
            metadata=entry.metadata,
            created_on=format_timestamp(entry.created_on),
            modified_on=format_timestamp(entry.modified_on),
        )


@dataclass
class DirectoryResponse(DataClassJSONMixin):
    """Response of a directory read: the directory and its children."""

    info: DirectoryInfoVO
    sub_directories: list[DirectoryInfoVO] = field(
        metadata=field_options(alias="subDirectories"), default_factory=list
    )
    files: list[FileInfoVO] = field(default_factory=list)

    class Config(BaseConfig):
        serialize_by_alias = True

    @classmethod
    def from_contents(cls, contents: DirectoryContents) -> "DirectoryResponse":
        return cls(
            info=DirectoryInfoVO.from_entry(contents.info),
            sub_directories=[
                DirectoryInfoVO.from_entry(d) for d in contents.sub_directories
            ],
            files=[FileInfoVO.from_entry(f) for f in contents.files],
        )

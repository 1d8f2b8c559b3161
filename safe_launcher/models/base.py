"""Module for API base classes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Self

from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.mixins.json import DataClassJSONMixin


@dataclass
class ErrorResponse(DataClassJSONMixin):
    """Body of every failed request."""

    error_code: int = field(metadata=field_options(alias="errorCode"))
    """Mapped error code, or the native code for network failures."""

    description: str
    """Human readable description. Names the offending field for validation errors."""

    class Config(BaseConfig):
        serialize_by_alias = True
        omit_none = True


class BaseEnum(Enum):
    """Base enum class."""

    @classmethod
    def from_value(cls, value: object) -> Self:
        for member in cls:
            if member.value == value:
                return member
        raise ValueError(f"Invalid {cls.__name__} value: {value}")

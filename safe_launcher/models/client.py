"""Client session API data models."""

from dataclasses import dataclass, field

from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.mixins.json import DataClassJSONMixin


@dataclass
class ClientStatsVO(DataClassJSONMixin):
    """Network requests issued by the current client handle."""

    get: int = field(metadata=field_options(alias="GET"), default=0)
    put: int = field(metadata=field_options(alias="PUT"), default=0)
    post: int = field(metadata=field_options(alias="POST"), default=0)
    delete: int = field(metadata=field_options(alias="DELETE"), default=0)

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class ConnectionEventVO(DataClassJSONMixin):
    """A connection state change pushed to subscribers."""

    is_registered: bool = field(metadata=field_options(alias="isRegistered"))
    """True for the authenticated handle, False for the anonymous one."""

    state: int
    timestamp: float

    class Config(BaseConfig):
        serialize_by_alias = True


@dataclass
class LoginRequest(DataClassJSONMixin):
    """Credentials of a network account."""

    keyword: str
    pin: str
    password: str

"""Operations accepted by the dispatcher.

Route handlers only copy request values into these dataclasses. Values are
kept as received, validation happens in the dispatcher after the caller is
authorised.
"""

import uuid
from collections.abc import AsyncIterable
from dataclasses import dataclass, field
from typing import Any

from .errors import LauncherException
from .services.auth import ANONYMOUS_CALLER, CallerContext


def new_request_id() -> str:
    return uuid.uuid4().hex


@dataclass(kw_only=True)
class Operation:
    """Base of every operation."""

    request_id: str = field(default_factory=new_request_id)
    caller: CallerContext = ANONYMOUS_CALLER

    module: str = "unknown"
    """Routing key, reported in logs."""

    body_error: LauncherException | None = None
    """Set when the request body could not be parsed."""


@dataclass(kw_only=True)
class Connect(Operation):
    """Open the anonymous client handle."""

    module: str = "connect"


@dataclass(kw_only=True)
class CreateAccount(Operation):
    module: str = "auth"
    keyword: Any = None
    pin: Any = None
    password: Any = None


@dataclass(kw_only=True)
class Login(Operation):
    module: str = "auth"
    keyword: Any = None
    pin: Any = None
    password: Any = None


@dataclass(kw_only=True)
class Clean(Operation):
    """Close open writers and release the authenticated handle."""

    module: str = "auth"


@dataclass(kw_only=True)
class GetClientStats(Operation):
    module: str = "client-stats"


@dataclass(kw_only=True)
class CreateDirectory(Operation):
    module: str = "nfs"
    root_path: Any = None
    path: Any = None
    metadata: Any = None
    is_private: Any = None


@dataclass(kw_only=True)
class GetDirectory(Operation):
    module: str = "nfs"
    root_path: Any = None
    path: Any = None


@dataclass(kw_only=True)
class DeleteDirectory(Operation):
    module: str = "nfs"
    root_path: Any = None
    path: Any = None


@dataclass(kw_only=True)
class ModifyDirectory(Operation):
    module: str = "nfs"
    root_path: Any = None
    path: Any = None
    name: Any = None
    metadata: Any = None


@dataclass(kw_only=True)
class MoveOrCopyDirectory(Operation):
    module: str = "nfs"
    src_root_path: Any = None
    src_path: Any = None
    dest_root_path: Any = None
    dest_path: Any = None
    action: Any = None


@dataclass(kw_only=True)
class CreateFile(Operation):
    module: str = "nfs"
    root_path: Any = None
    path: Any = None
    metadata: Any = None
    content: AsyncIterable[bytes] | None = None

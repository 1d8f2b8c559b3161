"""Resolution of the calling application from its bearer token.

Tokens are issued by the authorization subsystem. This module only checks
them and extracts the claims the directory service needs.
"""

import logging
from dataclasses import dataclass, field

import jwt

logger = logging.getLogger(__name__)

SAFE_DRIVE_ACCESS = "SAFE_DRIVE_ACCESS"


@dataclass(frozen=True)
class AppInfo:
    """Identity of the calling application."""

    name: str
    id: str
    vendor: str


@dataclass(frozen=True)
class CallerContext:
    """What is known about the caller of a request."""

    app: AppInfo | None = None
    permissions: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_authorised(self) -> bool:
        return self.app is not None

    @property
    def has_drive_access(self) -> bool:
        return SAFE_DRIVE_ACCESS in self.permissions


ANONYMOUS_CALLER = CallerContext()


def bearer_token(header: str | None) -> str | None:
    """Extract the token of an `Authorization: Bearer` header."""
    if not header or not header.startswith("Bearer "):
        return None
    return header.split(" ", 1)[1].strip() or None


def resolve_caller(token: str | None, secret: str, algorithm: str) -> CallerContext:
    """Decode a caller token. Anything invalid yields an anonymous caller."""
    if not token:
        return ANONYMOUS_CALLER
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.InvalidTokenError as err:
        logger.info("Rejected caller token: %s", err)
        return ANONYMOUS_CALLER

    app = payload.get("app")
    if not isinstance(app, dict):
        return ANONYMOUS_CALLER
    try:
        info = AppInfo(name=str(app["name"]), id=str(app["id"]), vendor=str(app["vendor"]))
    except KeyError:
        return ANONYMOUS_CALLER

    permissions = payload.get("permissions") or []
    if not isinstance(permissions, list):
        permissions = []
    return CallerContext(
        app=info, permissions=frozenset(str(p) for p in permissions)
    )

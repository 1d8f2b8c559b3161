"""Errors returned by the directory service.

Every failure of a request is described by one `LauncherException`
subclass. The dispatcher turns them into an `ErrorResponse` with the HTTP
status of the exception.
"""

from enum import Enum

from ..models.base import ErrorResponse
from ..network import NativeCode, NativeError

__all__ = [
    "ErrorKind",
    "UNAUTHORISED",
    "INVALID_DIR_PATH",
    "CANNOT_DELETE_ROOT",
    "REQUIRED_PARAMS_MISSING",
    "LauncherException",
    "UnauthorisedException",
    "MissingParameterException",
    "MissingParametersException",
    "InvalidParameterException",
    "InvalidPathException",
    "CannotDeleteRootException",
    "NotFoundException",
    "AlreadyExistsException",
    "PermissionDeniedException",
    "InternalErrorException",
    "from_native_error",
]

UNAUTHORISED = "Unauthorised"
INVALID_DIR_PATH = "Invalid directory path"
CANNOT_DELETE_ROOT = "Cannot delete root directory"
REQUIRED_PARAMS_MISSING = "Required parameters missing"


class ErrorKind(str, Enum):
    """Kinds of request failures."""

    UNAUTHORISED = "Unauthorised"
    MISSING_PARAMETER = "MissingParameter"
    MISSING_PARAMETERS = "MissingParameters"
    INVALID_PARAMETER = "InvalidParameter"
    INVALID_PATH = "InvalidPath"
    CANNOT_DELETE_ROOT = "CannotDeleteRoot"
    NOT_FOUND = "NotFound"
    ALREADY_EXISTS = "AlreadyExists"
    PERMISSION_DENIED = "PermissionDenied"
    INTERNAL_ERROR = "InternalError"


class LauncherException(Exception):
    """Base exception for request failures."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    status: int = 500
    error_code: int = 500

    def __init__(
        self,
        description: str,
        *,
        field: str | None = None,
        native_code: int | None = None,
    ) -> None:
        super().__init__(description)
        self.description = description
        self.field = field
        self.native_code = native_code

    def to_response(self) -> ErrorResponse:
        """Return the response body for this error."""
        return ErrorResponse(error_code=self.error_code, description=self.description)


class UnauthorisedException(LauncherException):
    """No valid caller session or client handle."""

    kind = ErrorKind.UNAUTHORISED
    status = 401
    error_code = 401

    def __init__(self) -> None:
        super().__init__(UNAUTHORISED)


class MissingParameterException(LauncherException):
    """A required parameter is absent."""

    kind = ErrorKind.MISSING_PARAMETER
    status = 400
    error_code = 400

    def __init__(self, field: str) -> None:
        super().__init__(f"Invalid request. {field} is missing", field=field)


class MissingParametersException(LauncherException):
    """A group of parameters where at least one is required is absent."""

    kind = ErrorKind.MISSING_PARAMETERS
    status = 400
    error_code = 400

    def __init__(self) -> None:
        super().__init__(REQUIRED_PARAMS_MISSING)


class InvalidParameterException(LauncherException):
    """A parameter has the wrong type or an unsupported value."""

    kind = ErrorKind.INVALID_PARAMETER
    status = 400
    error_code = 400

    def __init__(self, field: str) -> None:
        super().__init__(f"Invalid request. {field} is not valid", field=field)


class InvalidPathException(LauncherException):
    """The path can't be the target of the operation."""

    kind = ErrorKind.INVALID_PATH
    status = 400
    error_code = 400

    def __init__(self, description: str = INVALID_DIR_PATH, **kwargs) -> None:
        super().__init__(description, **kwargs)


class CannotDeleteRootException(LauncherException):
    """A root directory can't be deleted."""

    kind = ErrorKind.CANNOT_DELETE_ROOT
    status = 400
    error_code = 400

    def __init__(self) -> None:
        super().__init__(CANNOT_DELETE_ROOT)


class NotFoundException(LauncherException):
    """The target, source or destination does not exist."""

    kind = ErrorKind.NOT_FOUND
    status = 404
    error_code = 404


class AlreadyExistsException(LauncherException):
    """An entry with the same name already exists in the parent."""

    kind = ErrorKind.ALREADY_EXISTS
    status = 400

    @property
    def error_code(self) -> int:  # type: ignore[override]
        return self.native_code if self.native_code is not None else 400


class PermissionDeniedException(LauncherException):
    """The caller lacks the grant for the requested root."""

    kind = ErrorKind.PERMISSION_DENIED
    status = 400
    error_code = int(NativeCode.PERMISSION_DENIED)

    def __init__(self, description: str = "FfiError::PermissionDenied", **kwargs) -> None:
        kwargs.setdefault("native_code", int(NativeCode.PERMISSION_DENIED))
        super().__init__(description, **kwargs)


class InternalErrorException(LauncherException):
    """An unmapped native failure or an unexpected error."""

    kind = ErrorKind.INTERNAL_ERROR
    status = 500

    @property
    def error_code(self) -> int:  # type: ignore[override]
        return self.native_code if self.native_code is not None else 500


_NATIVE_ERRORS: dict[int, type[LauncherException]] = {
    NativeCode.PERMISSION_DENIED: PermissionDeniedException,
    NativeCode.PATH_NOT_FOUND: NotFoundException,
    NativeCode.DIRECTORY_NOT_FOUND: NotFoundException,
    NativeCode.DIRECTORY_ALREADY_EXISTS: AlreadyExistsException,
    NativeCode.FILE_ALREADY_EXISTS: AlreadyExistsException,
    NativeCode.ACCOUNT_EXISTS: AlreadyExistsException,
    NativeCode.INVALID_PATH: InvalidPathException,
    NativeCode.DESTINATION_AND_SOURCE_ARE_SAME: InvalidPathException,
}


def from_native_error(err: NativeError) -> LauncherException:
    """Map a native result code to the error taxonomy."""
    if err.code in (NativeCode.INVALID_CREDENTIALS, NativeCode.OPERATION_FORBIDDEN):
        return UnauthorisedException()
    cls = _NATIVE_ERRORS.get(err.code, InternalErrorException)
    return cls(err.description, native_code=err.code)

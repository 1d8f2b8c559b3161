"""Result codes reported by the native network client."""

from enum import IntEnum


class NativeCode(IntEnum):
    """Numeric codes returned by the native client."""

    OK = 0
    LIB_LOAD_ERROR = -2
    INVALID_CREDENTIALS = -101
    ACCOUNT_EXISTS = -102
    OPERATION_FORBIDDEN = -103
    INVALID_PATH = -1502
    PATH_NOT_FOUND = -1503
    PERMISSION_DENIED = -1504
    DIRECTORY_ALREADY_EXISTS = -2001
    DIRECTORY_NOT_FOUND = -2002
    DESTINATION_AND_SOURCE_ARE_SAME = -2003
    FILE_ALREADY_EXISTS = -2004


DESCRIPTIONS: dict[NativeCode, str] = {
    NativeCode.LIB_LOAD_ERROR: "FfiError::LibraryLoadError",
    NativeCode.INVALID_CREDENTIALS: "CoreError::InvalidCredentials",
    NativeCode.ACCOUNT_EXISTS: "CoreError::AccountExists",
    NativeCode.OPERATION_FORBIDDEN: "CoreError::OperationForbiddenForClient",
    NativeCode.INVALID_PATH: "FfiError::InvalidPath",
    NativeCode.PATH_NOT_FOUND: "FfiError::PathNotFound",
    NativeCode.PERMISSION_DENIED: "FfiError::PermissionDenied",
    NativeCode.DIRECTORY_ALREADY_EXISTS: "NfsError::DirectoryAlreadyExistsWithSameName",
    NativeCode.DIRECTORY_NOT_FOUND: "NfsError::DirectoryNotFound",
    NativeCode.DESTINATION_AND_SOURCE_ARE_SAME: "NfsError::DestinationAndSourceAreSame",
    NativeCode.FILE_ALREADY_EXISTS: "NfsError::FileAlreadyExistsWithSameName",
}


class NativeError(Exception):
    """Exception raised by a native client call with a non-zero result code."""

    def __init__(self, code: int, description: str | None = None) -> None:
        """Initialize the native error."""
        if description is None:
            try:
                description = DESCRIPTIONS[NativeCode(code)]
            except (ValueError, KeyError):
                description = f"Native error {code}"
        super().__init__(description)
        self.code = code
        self.description = description

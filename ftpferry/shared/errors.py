"""Error codes and exceptions for FTPFerry."""
from enum import Enum, auto
from typing import Optional


class ErrorCode(Enum):
    """Enumeration of all possible error codes in the application."""

    NOT_CONNECTED = auto()
    ALREADY_CONNECTED = auto()
    AUTH_FAILED = auto()
    CONNECT_FAILED = auto()
    PERMISSION_DENIED = auto()
    PATH_NOT_FOUND = auto()
    REMOTE_DISCONNECT = auto()
    TRANSFER_FAILED = auto()
    VALIDATION_FAILED = auto()
    UNKNOWN_ERROR = auto()


class FtpFerryError(Exception):
    """Base exception for FTPFerry errors."""

    def __init__(self, code: ErrorCode, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code.name}] {message}")


class ValidationError(FtpFerryError):
    """Raised when operation arguments are rejected before any network call."""

    def __init__(self, message: str):
        super().__init__(ErrorCode.VALIDATION_FAILED, message)


class NotConnectedError(FtpFerryError):
    """Raised when an operation needs a connection and none is active."""

    def __init__(self, message: str = "Not connected to server"):
        super().__init__(ErrorCode.NOT_CONNECTED, message)


class AlreadyConnectedError(FtpFerryError):
    """Raised by connect() while a connection is still active."""

    def __init__(self, host: str):
        self.host = host
        super().__init__(
            ErrorCode.ALREADY_CONNECTED,
            f"Already connected to {host}; disconnect first",
        )


class ConnectError(FtpFerryError):
    """Raised when the connection handshake fails."""

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        code: ErrorCode = ErrorCode.CONNECT_FAILED,
    ):
        self.cause = cause
        super().__init__(code, message)


class AuthenticationError(ConnectError):
    """Raised when the server rejects the credentials."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause, ErrorCode.AUTH_FAILED)


class TransferError(FtpFerryError):
    """
    Raised when an operation fails mid-flight.

    ``connection_lost`` is set when the transport itself went away, in which
    case the session treats the connection as closed.
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        code: ErrorCode = ErrorCode.TRANSFER_FAILED,
        connection_lost: bool = False,
    ):
        self.cause = cause
        self.connection_lost = connection_lost
        super().__init__(code, message)


class PathNotFoundError(TransferError):
    """Raised when a remote or local path does not exist."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause, ErrorCode.PATH_NOT_FOUND)


class PermissionDeniedError(TransferError):
    """Raised when the server refuses an operation."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause, ErrorCode.PERMISSION_DENIED)


class ConnectionLostError(TransferError):
    """Raised when the transport dropped during an operation."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(
            message, cause, ErrorCode.REMOTE_DISCONNECT, connection_lost=True
        )

"""Status definitions and exceptions for Passbook.

This module provides:
    - Status: enumeration of possible application states
    - STATUS_MESSAGE: user-facing messages for each status
    - get_message: retrieve the message for a status
    - BaseStatusException: base exception carrying a Status
    - Specific exceptions (e.g., SessionExpiredException) raised by the api client,
      the form validators and the settings library
"""
import enum
import logging
from typing import Dict, Optional


class Status(enum.StrEnum):
    """Enumeration of application status codes."""
    UnknownStatus = enum.auto()
    Okay = enum.auto()

    # Config status
    ConfigNotFound = enum.auto()
    ConfigInvalid = enum.auto()
    ServerNotConfigured = enum.auto()

    # Authentication status
    NotSetUp = enum.auto()
    SessionExpired = enum.auto()

    # Service status
    ServiceUnavailable = enum.auto()
    RequestFailed = enum.auto()
    PaginationInvalid = enum.auto()

    # Input status
    InputInvalid = enum.auto()


STATUS_MESSAGE: Dict[Status, str] = {
    Status.UnknownStatus: 'Unknown status. Please check the settings.',
    Status.Okay: 'Everything is okay.',

    Status.ConfigNotFound: 'Could not find the config file.',
    Status.ConfigInvalid: 'The config file seems to be incomplete, or contains invalid values.',
    Status.ServerNotConfigured: 'No server address has been set. Have you set the server url in the settings?',

    Status.NotSetUp: 'No PIN has been set up yet.',
    Status.SessionExpired: 'Session expired',

    Status.ServiceUnavailable: 'Failed to connect to server',
    Status.RequestFailed: 'Request failed',
    Status.PaginationInvalid: 'The server returned an invalid page cursor.',

    Status.InputInvalid: 'Please check the values entered.',
}


def get_message(status: Status) -> str:
    """
    Get the message for a given status.

    Args:
        status (Status): The status enum.

    Returns:
        str: The message associated with the status.
    """
    return STATUS_MESSAGE.get(status, 'Unknown status')


class BaseStatusException(Exception):
    """Base exception for status-based errors in Passbook.

    Attributes:
        status (Status): Status code associated with this error.
        status_message (str): User-facing message for the status.
        message (str): The message to display to the user, either the given
            context or the status message.

    Args:
        message (str): Optional additional context for the error.
    """
    status = Status.UnknownStatus
    log_level = logging.ERROR

    def __init__(self, message: Optional[str] = None):
        self.status_message = get_message(self.status)
        self.message = message or self.status_message
        exception_message = f'{self.status_message} {message}' if message else self.status_message
        super().__init__(exception_message)

        logging.log(self.log_level, exception_message)

        from ..ui.actions import signals
        signals.error.emit(self.message)


class UnknownException(BaseStatusException):
    """Exception for an unknown error during status processing."""
    pass


class ConfigNotFoundException(BaseStatusException):
    """Exception raised when the config file cannot be found."""
    status = Status.ConfigNotFound


class ConfigInvalidException(BaseStatusException):
    """Exception raised when the config file is invalid or malformed."""
    status = Status.ConfigInvalid


class ServerNotConfiguredException(BaseStatusException):
    """Exception raised when no server url is configured."""
    status = Status.ServerNotConfigured


class NotSetUpException(BaseStatusException):
    """Exception raised when the backend has no PIN configured yet."""
    status = Status.NotSetUp


class SessionExpiredException(BaseStatusException):
    """Exception raised when the server rejects the stored session token."""
    status = Status.SessionExpired
    log_level = logging.WARNING


class ServiceUnavailableException(BaseStatusException):
    """Exception raised when the server cannot be reached or sends garbage."""
    status = Status.ServiceUnavailable


class RequestFailedException(BaseStatusException):
    """Exception raised when the server answers with a non-2xx status.

    The display message is the ``error`` field of the server's response.

    Attributes:
        status_code (int): The HTTP status code of the response.
    """
    status = Status.RequestFailed

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class PaginationException(BaseStatusException):
    """Exception raised when a paginated endpoint repeats its cursor."""
    status = Status.PaginationInvalid


class ValidationException(BaseStatusException):
    """Exception raised when a form value fails validation."""
    status = Status.InputInvalid
    log_level = logging.WARNING

    def __str__(self) -> str:
        return self.message

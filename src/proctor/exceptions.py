"""Exception hierarchy for proctor.

All exceptions inherit from :class:`ProctorError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`proctor.exit_codes`
and a ``kind`` tag from :class:`ErrorKind`. The top-level error handler in
:func:`proctor.app.main` catches ``ProctorError`` and exits with the
appropriate code, while unexpected exceptions produce a crash log and exit
with :data:`EXIT_GENERIC_FAILURE`.

Every user-facing message is built from a fixed template so CLI output stays
stable; only the transport detail (method, URL, status, raw error text) is
interpolated.

Subclass hierarchy::

    ProctorError (exit 1)
    +-- ConfigInvalid          (exit 1)
    |   +-- ResponseParseError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- Unauthorized           (exit 3)
    +-- Forbidden              (exit 3)
    +-- ServerError            (exit 5)
    +-- NetworkTimeout         (exit 6)
    +-- NetworkError           (exit 6)
    +-- StreamHandshakeFailed  (exit 8)
"""

from __future__ import annotations

import enum

from proctor.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SERVER_ERROR,
    EXIT_STREAM_HANDSHAKE,
)

UNAUTHORIZED_HEADER = "Unauthorized Access!!!"
MISSING_CREDENTIALS_REASON = "EMAIL_ID or ACCESS_TOKEN is not present in proctor config file."
INVALID_CREDENTIALS_REASON = (
    "Please check the EMAIL_ID and ACCESS_TOKEN validity in proctor config file."
)
FORBIDDEN_MESSAGE = (
    "Access denied. You are not authorized to perform this action. Please contact proc admin."
)
TIMEOUT_HINT = "Please check your Internet/VPN connection for connectivity to ProctorD."
BAD_HANDSHAKE_REASON = "websocket: bad handshake"


class ErrorKind(str, enum.Enum):
    """Tag identifying which variant of the error taxonomy an exception is."""

    CONFIG_INVALID = "config_invalid"
    INVALID_USAGE = "invalid_usage"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    SERVER_ERROR = "server_error"
    NETWORK_TIMEOUT = "network_timeout"
    NETWORK_ERROR = "network_error"
    STREAM_HANDSHAKE_FAILED = "stream_handshake_failed"


class ProctorError(Exception):
    """Base exception for all proctor errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`proctor.exit_codes` and a class-level ``kind``.
    The entry point catches this exception type and calls
    ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    kind: ErrorKind = ErrorKind.CONFIG_INVALID

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code

    @property
    def message(self) -> str:
        return str(self)


class ConfigInvalid(ProctorError):
    """Raised when the proctor config file is missing, unreadable or incomplete."""

    kind = ErrorKind.CONFIG_INVALID

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ResponseParseError(ConfigInvalid):
    """Raised when a successful daemon response cannot be decoded."""


class InvalidUsageError(ProctorError):
    """Raised for invalid CLI arguments (e.g. a malformed ``KEY=VALUE`` pair)."""

    exit_code = EXIT_INVALID_USAGE
    kind = ErrorKind.INVALID_USAGE


class Unauthorized(ProctorError):
    """Raised when credentials are absent from the config or rejected by the daemon.

    The two preconditions share this kind but keep distinct reasons; use
    :meth:`missing_credentials` and :meth:`rejected_credentials` rather than
    building the message by hand.
    """

    exit_code = EXIT_AUTH_FAILURE
    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, reason: str):
        super().__init__(f"{UNAUTHORIZED_HEADER}\n{reason}")
        self.reason = reason

    @classmethod
    def missing_credentials(cls) -> Unauthorized:
        return cls(MISSING_CREDENTIALS_REASON)

    @classmethod
    def rejected_credentials(cls) -> Unauthorized:
        return cls(INVALID_CREDENTIALS_REASON)


class Forbidden(ProctorError):
    """Raised on HTTP 403: the user is known but may not perform the action."""

    exit_code = EXIT_AUTH_FAILURE
    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str = FORBIDDEN_MESSAGE):
        super().__init__(message)


class ServerError(ProctorError):
    """Raised for 5xx responses and any status the client does not otherwise handle."""

    exit_code = EXIT_SERVER_ERROR
    kind = ErrorKind.SERVER_ERROR

    def __init__(self, status_code: int, reason_phrase: str = ""):
        super().__init__(f"Server Error!!!\nStatus Code: {status_code}, {reason_phrase}")
        self.status_code = status_code
        self.reason_phrase = reason_phrase


class NetworkTimeout(ProctorError):
    """Raised when the transport gives up waiting on the daemon."""

    exit_code = EXIT_CONNECTION_ERROR
    kind = ErrorKind.NETWORK_TIMEOUT

    def __init__(self, method: str, url: str, detail: str):
        super().__init__(f"Connection Timeout!!!\n{method} {url}: {detail}\n{TIMEOUT_HINT}")
        self.method = method
        self.url = url
        self.detail = detail


class NetworkError(ProctorError):
    """Raised on network-level failures other than timeouts (DNS, refused, reset)."""

    exit_code = EXIT_CONNECTION_ERROR
    kind = ErrorKind.NETWORK_ERROR

    def __init__(self, method: str, url: str, detail: str):
        super().__init__(f"Network Error!!!\n{method} {url}: {detail}")
        self.method = method
        self.url = url
        self.detail = detail


class StreamHandshakeFailed(ProctorError):
    """Raised when the daemon answers the WebSocket upgrade with a plain HTTP response.

    Args:
        reason: The rejection reason shown to the user.
        status_code: HTTP status the daemon answered with, when known.
    """

    exit_code = EXIT_STREAM_HANDSHAKE
    kind = ErrorKind.STREAM_HANDSHAKE_FAILED

    def __init__(self, reason: str = BAD_HANDSHAKE_REASON, status_code: int | None = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code

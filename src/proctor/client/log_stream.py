"""WebSocket session relaying an execution's log lines from ProctorD.

A :class:`LogStreamSession` owns one connection through a small state
machine::

    CONNECTING --upgrade ok--> STREAMING --close frame / read error--> CLOSED
        |
        +--rejected / network failure--> FAILED

The handshake runs in the caller's thread so rejections surface as ordinary
exceptions from :meth:`LogStreamSession.open`. Frames are then read on a
dedicated thread and handed to the ``on_frame`` callback one at a time. The
caller cancels by calling :meth:`LogStreamSession.close`, which closes the
socket; the reader observes the closure and exits. Whichever path ends the
session, the connection is released exactly once.

Reconnecting is left to the caller.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import Any, Callable, Optional, Union

import httpx
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidStatus, InvalidURI
from websockets.sync.client import connect

from proctor.client.classifier import classify_transport_error
from proctor.exceptions import (
    BAD_HANDSHAKE_REASON,
    Forbidden,
    ProctorError,
    StreamHandshakeFailed,
    Unauthorized,
)

logger = logging.getLogger(__name__)

Frame = Union[str, bytes]
FrameHandler = Callable[[Frame], None]

UNAUTHORIZED_CLOSE_CODE = 4401
FORBIDDEN_CLOSE_CODE = 4403

_CLOSE_ERRORS: dict[int, Callable[[], ProctorError]] = {
    UNAUTHORIZED_CLOSE_CODE: Unauthorized.rejected_credentials,
    FORBIDDEN_CLOSE_CODE: Forbidden,
}


class StreamState(str, enum.Enum):
    """Lifecycle states of a :class:`LogStreamSession`."""

    CONNECTING = "connecting"
    STREAMING = "streaming"
    CLOSED = "closed"
    FAILED = "failed"


def _handshake_rejection(status_code: int) -> StreamHandshakeFailed:
    """Build the error for a daemon that answered the upgrade with *status_code*."""
    if status_code in (401, 403):
        return StreamHandshakeFailed(httpx.codes.get_reason_phrase(status_code), status_code)
    return StreamHandshakeFailed(BAD_HANDSHAKE_REASON, status_code)


def _close_error(exc: ConnectionClosed) -> Optional[ProctorError]:
    """Return the error a close frame stands for, or ``None`` for an ordinary end."""
    if exc.rcvd is None:
        return None
    factory = _CLOSE_ERRORS.get(exc.rcvd.code)
    return factory() if factory is not None else None


class LogStreamSession:
    """One authenticated log-streaming connection.

    Args:
        url: ``ws://`` URL of the daemon's log endpoint for one execution.
        headers: Authentication headers sent with the upgrade request.
        on_frame: Called with every text or binary frame, in arrival order.
        open_timeout: Seconds allowed for the handshake; ``None`` waits forever.
        connector: Callable opening the connection. Defaults to
            :func:`websockets.sync.client.connect`; tests substitute fakes.

    Example::

        session = LogStreamSession(url, headers, on_frame=print)
        session.run()
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str],
        on_frame: FrameHandler,
        open_timeout: Optional[float] = None,
        connector: Callable[..., Any] = connect,
    ) -> None:
        self._url = url
        self._headers = dict(headers)
        self._on_frame = on_frame
        self._open_timeout = open_timeout
        self._connector = connector
        self._state = StreamState.CONNECTING
        self._connection: Any = None
        self._reader: Optional[threading.Thread] = None
        self._error: Optional[BaseException] = None
        self._closed = False
        self._release_lock = threading.Lock()

    @property
    def state(self) -> StreamState:
        """Current lifecycle state."""
        return self._state

    @property
    def url(self) -> str:
        return self._url

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def open(self) -> None:
        """Perform the upgrade handshake.

        A :meth:`close` issued before or during the handshake wins: the new
        connection is closed at once and the session ends in ``CLOSED``.

        Raises:
            StreamHandshakeFailed: If the daemon answered with a plain HTTP
                response instead of upgrading.
            NetworkTimeout: If the handshake timed out.
            NetworkError: If the daemon could not be reached.
            RuntimeError: If the session has already been opened.
        """
        if self._state is not StreamState.CONNECTING:
            raise RuntimeError(f"Log stream already {self._state.value}")
        if self._closed:
            self._state = StreamState.CLOSED
            return
        try:
            connection = self._connector(
                self._url,
                additional_headers=self._headers,
                open_timeout=self._open_timeout,
            )
        except InvalidStatus as exc:
            self._state = StreamState.FAILED
            status_code = exc.response.status_code
            logger.debug("Log stream upgrade rejected with HTTP %s: %s", status_code, self._url)
            raise _handshake_rejection(status_code) from exc
        except (InvalidHandshake, InvalidURI, OSError) as exc:
            # TimeoutError is an OSError subclass.
            self._state = StreamState.FAILED
            raise classify_transport_error("GET", self._url, exc) from exc
        with self._release_lock:
            self._connection = connection
            cancelled = self._closed
            if not cancelled:
                self._state = StreamState.STREAMING
        if cancelled:
            self._state = StreamState.CLOSED
            logger.debug("Log stream cancelled during handshake: %s", self._url)
            connection.close()
            return
        logger.debug("Log stream connected: %s", self._url)

    def start(self) -> None:
        """Open the connection and begin reading frames on a background thread."""
        self.open()
        if self._state is not StreamState.STREAMING:
            return
        self._reader = threading.Thread(
            target=self._read_loop,
            name="proctor-log-stream",
            daemon=True,
        )
        self._reader.start()

    def wait(self) -> None:
        """Block until the read loop ends.

        Raises:
            Unauthorized: If the daemon closed the stream with code 4401.
            Forbidden: If the daemon closed the stream with code 4403.
            Exception: Whatever the ``on_frame`` callback raised.
        """
        if self._reader is not None:
            self._reader.join()
        if self._error is not None:
            raise self._error

    def run(self) -> None:
        """Stream until the daemon ends the session; close on any early exit."""
        self.start()
        try:
            self.wait()
        finally:
            self.close()

    def close(self) -> None:
        """Cancel the stream, even mid-handshake.

        Safe to call from any thread, any number of times.
        """
        self._release()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _read_loop(self) -> None:
        connection = self._connection
        try:
            while True:
                try:
                    frame = connection.recv()
                except ConnectionClosed as exc:
                    self._error = _close_error(exc)
                    logger.debug("Log stream closed: %s", exc)
                    return
                self._on_frame(frame)
        except BaseException as exc:
            self._error = exc
        finally:
            self._state = StreamState.CLOSED
            self._release()

    def _release(self) -> None:
        with self._release_lock:
            if self._closed:
                return
            self._closed = True
            connection = self._connection
        if connection is not None:
            connection.close()

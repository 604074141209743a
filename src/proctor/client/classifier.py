"""Classification of daemon exchanges into payloads or typed errors.

Every HTTP call the client makes ends in one of two outcomes: the transport
failed before a response arrived, or a response with a status code and body
came back. This module maps both onto the :mod:`proctor.exceptions`
taxonomy:

============================  ==========================================
Outcome                       Result
============================  ==========================================
transport timeout             :class:`~proctor.exceptions.NetworkTimeout`
other transport failure       :class:`~proctor.exceptions.NetworkError`
200 / 201                     body decoded into the caller's type
401                           :class:`~proctor.exceptions.Unauthorized`
403                           :class:`~proctor.exceptions.Forbidden`
anything else                 :class:`~proctor.exceptions.ServerError`
============================  ==========================================

The status mapping is a static table so that adding a status is a one-line
change and nothing depends on ``isinstance`` chains.
"""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from proctor.exceptions import (
    Forbidden,
    NetworkError,
    NetworkTimeout,
    ProctorError,
    ResponseParseError,
    ServerError,
    Unauthorized,
)

T = TypeVar("T")

SUCCESS_STATUS_CODES = frozenset({200, 201})

_STATUS_ERRORS: dict[int, Callable[[], ProctorError]] = {
    401: Unauthorized.rejected_credentials,
    403: Forbidden,
}


def display_method(method: str) -> str:
    """Render an HTTP method the way error messages show it (``Get``, ``Post``)."""
    return method.capitalize()


def classify_transport_error(method: str, url: str, exc: BaseException) -> ProctorError:
    """Map a failure raised before any response arrived.

    Args:
        method: HTTP method of the failed request.
        url: Full URL of the failed request.
        exc: The transport exception (``httpx.TransportError`` for HTTP,
            ``OSError``/``TimeoutError`` for the WebSocket handshake).

    Returns:
        :class:`NetworkTimeout` when *exc* is a timeout, else :class:`NetworkError`.
    """
    detail = str(exc) or type(exc).__name__
    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return NetworkTimeout(display_method(method), url, detail)
    return NetworkError(display_method(method), url, detail)


def classify_status(status_code: int, reason_phrase: str = "") -> Optional[ProctorError]:
    """Map a response status to an error, or ``None`` for success.

    Args:
        status_code: HTTP status received.
        reason_phrase: Standard reason phrase for the status.

    Returns:
        The error to raise, or ``None`` if *status_code* denotes success.
    """
    if status_code in SUCCESS_STATUS_CODES:
        return None
    factory = _STATUS_ERRORS.get(status_code)
    if factory is not None:
        return factory()
    return ServerError(status_code, reason_phrase or httpx.codes.get_reason_phrase(status_code))


def raise_for_status(response: httpx.Response) -> None:
    """Raise the classified error for *response* if its status is not a success.

    Raises:
        Unauthorized: On 401.
        Forbidden: On 403.
        ServerError: On any other non-success status.
    """
    err = classify_status(response.status_code, response.reason_phrase)
    if err is not None:
        raise err


def decode_response(response: httpx.Response, adapter: TypeAdapter[T]) -> T:
    """Classify *response* and decode its JSON body with *adapter*.

    Args:
        response: Completed response from the daemon.
        adapter: Pydantic adapter for the expected payload shape.

    Returns:
        The validated payload.

    Raises:
        ResponseParseError: If the status is a success but the body does not
            match the expected shape.
        ProctorError: Any error from :func:`raise_for_status`.
    """
    raise_for_status(response)
    try:
        return adapter.validate_json(response.content)
    except ValidationError as exc:
        request = response.request
        raise ResponseParseError(
            f"Unable to decode ProctorD response for "
            f"{display_method(request.method)} {request.url}: {exc}"
        ) from exc

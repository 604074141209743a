"""Synchronous client for the ProctorD job daemon.

This module provides :class:`ProcClient`, the blocking client used by the
proctor CLI commands. Each public operation is self-contained:

1. **Load config** -- a fresh :class:`~proctor.models.ProctorConfig` from the
   injected :class:`ConfigProvider`; never cached between calls.
2. **Check credentials** -- an empty email or access token fails with the
   missing-credential :class:`~proctor.exceptions.Unauthorized` before any
   network traffic.
3. **Send** -- an :class:`httpx.Client` is opened for the one request with the
   headers from :func:`~proctor.client.headers.build_auth_headers`.
4. **Classify** -- :mod:`proctor.client.classifier` turns the outcome into a
   decoded payload or a typed error.

Log streaming follows the same first two steps and then hands over to
:class:`~proctor.client.log_stream.LogStreamSession`.

Nothing is retried; retry policy belongs to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Protocol
from urllib.parse import urlencode

import httpx
from pydantic import TypeAdapter, ValidationError

from proctor.client.classifier import classify_transport_error, decode_response
from proctor.client.headers import build_auth_headers
from proctor.client.log_stream import FrameHandler, LogStreamSession
from proctor.config import ConfigLoader
from proctor.exceptions import ConfigInvalid, InvalidUsageError, Unauthorized
from proctor.models import ExecutionHandle, ExecutionRequest, ProcMetadata, ProctorConfig

logger = logging.getLogger(__name__)

METADATA_PATH = "/jobs/metadata"
EXECUTE_PATH = "/jobs/execute"
LOGS_PATH = "/jobs/logs"

_PROC_LIST = TypeAdapter(list[ProcMetadata])
_EXECUTION_HANDLE = TypeAdapter(ExecutionHandle)


class ConfigProvider(Protocol):
    """Anything that can produce a :class:`~proctor.models.ProctorConfig`."""

    def load(self) -> ProctorConfig: ...


def http_base_url(host: str) -> str:
    """Return the ``http(s)://`` base URL for *host*, defaulting to plain HTTP."""
    host = host.rstrip("/")
    if host.startswith(("http://", "https://")):
        return host
    return f"http://{host}"


def ws_base_url(host: str) -> str:
    """Return the ``ws(s)://`` base URL matching :func:`http_base_url`."""
    base = http_base_url(host)
    if base.startswith("https://"):
        return "wss://" + base[len("https://"):]
    return "ws://" + base[len("http://"):]


class ProcClient:
    """Client for listing, executing and following procs.

    Args:
        config_loader: Source of the configuration, consulted on every call.
            Defaults to a :class:`~proctor.config.ConfigLoader` reading the
            user's ``proctor.yaml``.
        transport: Optional :class:`httpx.BaseTransport` for HTTP calls. Tests
            pass an :class:`httpx.MockTransport`; ``None`` uses the network.
        stream_connector: Optional WebSocket connector forwarded to
            :class:`~proctor.client.log_stream.LogStreamSession`.

    Example::

        client = ProcClient()
        for proc in client.list_procs():
            print(proc.name)
        name = client.execute_proc("run-sample", {"SAMPLE_ARG1": "value"})
        client.stream_proc_logs(name, on_frame=print)
    """

    def __init__(
        self,
        config_loader: Optional[ConfigProvider] = None,
        transport: Optional[httpx.BaseTransport] = None,
        stream_connector: Optional[Callable[..., Any]] = None,
    ) -> None:
        self._config_loader = config_loader or ConfigLoader()
        self._transport = transport
        self._stream_connector = stream_connector

    # ------------------------------------------------------------------ #
    # Public operations
    # ------------------------------------------------------------------ #

    def list_procs(self) -> list[ProcMetadata]:
        """Fetch every proc the daemon offers.

        Returns:
            Proc metadata in daemon order, with env vars in daemon order.

        Raises:
            ConfigInvalid: If the configuration cannot be loaded.
            Unauthorized: If credentials are missing or rejected.
            Forbidden: On 403.
            ServerError: On any other non-success status.
            NetworkTimeout: If the request timed out.
            NetworkError: On any other transport failure.
            ResponseParseError: If the body is not a list of procs.
        """
        config = self._load_config()
        response = self._send(config, "GET", METADATA_PATH, build_auth_headers(config))
        return decode_response(response, _PROC_LIST)

    def execute_proc(self, proc_name: str, args: Mapping[str, str]) -> str:
        """Start an execution of *proc_name*.

        Args:
            proc_name: Name of the proc to run.
            args: Values for the proc's args and secrets; may be empty.

        Returns:
            The daemon-assigned execution name, usable with
            :meth:`stream_proc_logs`.

        Raises:
            InvalidUsageError: If *proc_name* is empty or an arg is not a string.
            ProctorError: As for :meth:`list_procs`.
        """
        try:
            request = ExecutionRequest(proc_name=proc_name, args=dict(args))
        except ValidationError as exc:
            raise InvalidUsageError(f"Invalid execution request for '{proc_name}': {exc}") from exc
        config = self._load_config()
        response = self._send(
            config,
            "POST",
            EXECUTE_PATH,
            build_auth_headers(config, proc_name=request.proc_name),
            json_body=request.args,
        )
        return decode_response(response, _EXECUTION_HANDLE).name

    def open_log_stream(self, execution_name: str, on_frame: FrameHandler) -> LogStreamSession:
        """Build an unopened log session for *execution_name*.

        Use this instead of :meth:`stream_proc_logs` when the caller needs a
        handle for cancelling the stream from another thread.

        Raises:
            ConfigInvalid: If the configuration cannot be loaded.
            Unauthorized: If credentials are missing.
        """
        config = self._load_config()
        url = f"{ws_base_url(config.host)}{LOGS_PATH}?{urlencode({'job_name': execution_name})}"
        kwargs: dict[str, Any] = {}
        if self._stream_connector is not None:
            kwargs["connector"] = self._stream_connector
        return LogStreamSession(
            url,
            build_auth_headers(config),
            on_frame,
            open_timeout=config.connection_timeout_secs,
            **kwargs,
        )

    def stream_proc_logs(self, execution_name: str, on_frame: FrameHandler) -> None:
        """Relay the logs of *execution_name* to *on_frame* until the stream ends.

        Raises:
            StreamHandshakeFailed: If the daemon refused the upgrade.
            Unauthorized: If credentials are missing, or the daemon closed the
                stream as unauthorized.
            NetworkTimeout: If the handshake timed out.
            NetworkError: If the daemon could not be reached.
        """
        self.open_log_stream(execution_name, on_frame).run()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _load_config(self) -> ProctorConfig:
        """Load the configuration and enforce the credential precondition."""
        try:
            config = self._config_loader.load()
        except ConfigInvalid:
            raise
        except (OSError, ValueError) as exc:
            raise ConfigInvalid(str(exc)) from exc
        if not config.has_credentials:
            raise Unauthorized.missing_credentials()
        return config

    def _send(
        self,
        config: ProctorConfig,
        method: str,
        path: str,
        headers: dict[str, str],
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Issue one request, translating transport failures."""
        url = f"{http_base_url(config.host)}{path}"
        logger.debug("%s %s", method, url)
        with httpx.Client(
            timeout=config.connection_timeout_secs,
            transport=self._transport,
        ) as client:
            try:
                response = client.request(method, url, headers=headers, json=json_body)
            except httpx.TransportError as exc:
                raise classify_transport_error(method, url, exc) from exc
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

"""Tests for the ProcClient list and execute operations."""

from __future__ import annotations

import json
from typing import Callable
from unittest.mock import MagicMock

import httpx
import pytest

from proctor import CLIENT_VERSION
from proctor.client.proc_client import ProcClient, http_base_url, ws_base_url
from proctor.exceptions import (
    ConfigInvalid,
    Forbidden,
    InvalidUsageError,
    NetworkError,
    NetworkTimeout,
    ResponseParseError,
    ServerError,
    Unauthorized,
)
from proctor.models import EnvVars, ProcMetadata, ProctorConfig, VarMetadata


METADATA_URL = "http://proctor.example.com/jobs/metadata"
EXECUTE_URL = "http://proctor.example.com/jobs/execute"

METADATA_BODY = (
    '[ { "name": "job-1", "description": "job description", '
    '"image_name": "hub.docker.com/job-1:latest", "env_vars": { "secrets": '
    '[ { "name": "SECRET1", "description": "Base64 encoded secret for authentication." } ], '
    '"args": [ { "name": "ARG1", "description": "Argument name" } ] } } ]'
)
EXECUTION_NAME = "proctor-777b1dfb-ea27-46d9-b02c-839b75a542e2"

MISSING_CREDENTIALS = (
    "Unauthorized Access!!!\nEMAIL_ID or ACCESS_TOKEN is not present in proctor config file."
)
REJECTED_CREDENTIALS = (
    "Unauthorized Access!!!\n"
    "Please check the EMAIL_ID and ACCESS_TOKEN validity in proctor config file."
)
FORBIDDEN = (
    "Access denied. You are not authorized to perform this action. Please contact proc admin."
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _client(
    loader: MagicMock,
    handler: Callable[[httpx.Request], httpx.Response],
) -> ProcClient:
    return ProcClient(config_loader=loader, transport=httpx.MockTransport(handler))


def _respond(status_code: int, body: str = "") -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text=body)

    return handler


def _raise(exc: Exception) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    return handler


def _assert_auth_headers(request: httpx.Request) -> None:
    assert request.headers["Email-Id"] == "proctor@example.com"
    assert request.headers["Access-Token"] == "access-token"
    assert request.headers["Client-Version"] == CLIENT_VERSION


# ---------------------------------------------------------------------------
# list_procs
# ---------------------------------------------------------------------------


class TestListProcs:
    def test_returns_procs_with_details(self, config_loader: MagicMock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert str(request.url) == METADATA_URL
            _assert_auth_headers(request)
            assert "Proc-Name" not in request.headers
            return httpx.Response(200, text=METADATA_BODY)

        procs = _client(config_loader, handler).list_procs()

        assert procs == [
            ProcMetadata(
                name="job-1",
                description="job description",
                env_vars=EnvVars(
                    secrets=[
                        VarMetadata(
                            name="SECRET1",
                            description="Base64 encoded secret for authentication.",
                        )
                    ],
                    args=[VarMetadata(name="ARG1", description="Argument name")],
                ),
            )
        ]
        config_loader.load.assert_called_once_with()

    def test_preserves_daemon_order(self, config_loader: MagicMock) -> None:
        body = json.dumps(
            [
                {
                    "name": "zeta",
                    "description": "",
                    "env_vars": {
                        "secrets": [],
                        "args": [{"name": "B", "description": ""}, {"name": "A", "description": ""}],
                    },
                },
                {"name": "alpha", "description": "", "env_vars": {"secrets": [], "args": []}},
            ]
        )

        procs = _client(config_loader, _respond(200, body)).list_procs()

        assert [p.name for p in procs] == ["zeta", "alpha"]
        assert [a.name for a in procs[0].env_vars.args] == ["B", "A"]

    def test_empty_list(self, config_loader: MagicMock) -> None:
        assert _client(config_loader, _respond(200, "[]")).list_procs() == []

    def test_server_error(self, config_loader: MagicMock) -> None:
        with pytest.raises(ServerError) as exc_info:
            _client(config_loader, _respond(500, "{}")).list_procs()

        assert str(exc_info.value) == "Server Error!!!\nStatus Code: 500, Internal Server Error"
        assert exc_info.value.status_code == 500

    def test_client_side_timeout(self, config_loader: MagicMock) -> None:
        client = _client(
            config_loader,
            _raise(httpx.ConnectTimeout("Unable to reach http://proctor.example.com/")),
        )

        with pytest.raises(NetworkTimeout) as exc_info:
            client.list_procs()

        assert str(exc_info.value) == (
            "Connection Timeout!!!\n"
            "Get http://proctor.example.com/jobs/metadata: "
            "Unable to reach http://proctor.example.com/\n"
            "Please check your Internet/VPN connection for connectivity to ProctorD."
        )

    def test_client_side_connection_error(self, config_loader: MagicMock) -> None:
        client = _client(config_loader, _raise(httpx.ConnectError("Unknown Error")))

        with pytest.raises(NetworkError) as exc_info:
            client.list_procs()

        assert str(exc_info.value) == (
            "Network Error!!!\nGet http://proctor.example.com/jobs/metadata: Unknown Error"
        )

    def test_unauthorized_user(self, config_loader: MagicMock) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            _client(config_loader, _respond(401, "{}")).list_procs()

        assert str(exc_info.value) == REJECTED_CREDENTIALS

    def test_forbidden_user(self, config_loader: MagicMock) -> None:
        with pytest.raises(Forbidden) as exc_info:
            _client(config_loader, _respond(403)).list_procs()

        assert str(exc_info.value) == FORBIDDEN

    def test_missing_access_token_skips_network(self, make_loader) -> None:
        loader = make_loader(
            ProctorConfig(host="proctor.example.com", email="proctor@example.com", access_token="")
        )
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(401, text="{}")

        with pytest.raises(Unauthorized) as exc_info:
            _client(loader, handler).list_procs()

        assert str(exc_info.value) == MISSING_CREDENTIALS
        assert calls == []
        loader.load.assert_called_once_with()

    def test_undecodable_body(self, config_loader: MagicMock) -> None:
        with pytest.raises(ResponseParseError) as exc_info:
            _client(config_loader, _respond(200, "not json")).list_procs()

        assert isinstance(exc_info.value, ConfigInvalid)
        assert "Get http://proctor.example.com/jobs/metadata" in str(exc_info.value)

    def test_proc_without_name_is_a_parse_error(self, config_loader: MagicMock) -> None:
        with pytest.raises(ResponseParseError):
            _client(config_loader, _respond(200, '[{"name": ""}]')).list_procs()

    def test_unclassified_status_is_server_error(self, config_loader: MagicMock) -> None:
        with pytest.raises(ServerError) as exc_info:
            _client(config_loader, _respond(404)).list_procs()

        assert str(exc_info.value) == "Server Error!!!\nStatus Code: 404, Not Found"

    def test_config_error_propagates(self, config_loader: MagicMock) -> None:
        config_loader.load.side_effect = ConfigInvalid("Config file not found in /nowhere")
        handler = MagicMock()

        with pytest.raises(ConfigInvalid, match="Config file not found"):
            _client(config_loader, handler).list_procs()

        handler.assert_not_called()

    def test_loader_os_error_is_wrapped(self, config_loader: MagicMock) -> None:
        config_loader.load.side_effect = PermissionError("Permission denied")

        with pytest.raises(ConfigInvalid, match="Permission denied"):
            _client(config_loader, _respond(200, "[]")).list_procs()

    def test_config_reloaded_every_call(self, config_loader: MagicMock) -> None:
        client = _client(config_loader, _respond(200, "[]"))

        client.list_procs()
        client.list_procs()

        assert config_loader.load.call_count == 2


# ---------------------------------------------------------------------------
# execute_proc
# ---------------------------------------------------------------------------


class TestExecuteProc:
    def test_returns_execution_name(self, config_loader: MagicMock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert str(request.url) == EXECUTE_URL
            _assert_auth_headers(request)
            assert request.headers["Proc-Name"] == "run-sample"
            assert json.loads(request.content) == {"SAMPLE_ARG1": "sample-value"}
            return httpx.Response(201, text=f'{{ "name": "{EXECUTION_NAME}"}}')

        result = _client(config_loader, handler).execute_proc(
            "run-sample", {"SAMPLE_ARG1": "sample-value"}
        )

        assert result == EXECUTION_NAME
        config_loader.load.assert_called_once_with()

    def test_empty_args_sends_empty_object(self, config_loader: MagicMock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content) == {}
            return httpx.Response(201, json={"name": EXECUTION_NAME})

        assert _client(config_loader, handler).execute_proc("run-sample", {}) == EXECUTION_NAME

    def test_internal_server_error(self, config_loader: MagicMock) -> None:
        with pytest.raises(ServerError) as exc_info:
            _client(config_loader, _respond(500)).execute_proc(
                "run-sample", {"SAMPLE_ARG1": "sample-value"}
            )

        assert str(exc_info.value) == "Server Error!!!\nStatus Code: 500, Internal Server Error"

    def test_bad_gateway_embeds_reason(self, config_loader: MagicMock) -> None:
        with pytest.raises(ServerError) as exc_info:
            _client(config_loader, _respond(502)).execute_proc("run-sample", {})

        assert str(exc_info.value) == "Server Error!!!\nStatus Code: 502, Bad Gateway"

    def test_unauthorized(self, config_loader: MagicMock) -> None:
        with pytest.raises(Unauthorized) as exc_info:
            _client(config_loader, _respond(401)).execute_proc(
                "run-sample", {"SAMPLE_ARG1": "sample-value"}
            )

        assert str(exc_info.value) == REJECTED_CREDENTIALS

    def test_unauthorized_when_email_and_token_not_set(self, make_loader) -> None:
        loader = make_loader(ProctorConfig(host="proctor.example.com"))
        handler = MagicMock()

        with pytest.raises(Unauthorized) as exc_info:
            _client(loader, handler).execute_proc("run-sample", {"SAMPLE_ARG1": "sample-value"})

        assert str(exc_info.value) == MISSING_CREDENTIALS
        handler.assert_not_called()

    def test_missing_email_only(self, make_loader) -> None:
        loader = make_loader(
            ProctorConfig(host="proctor.example.com", email="", access_token="access-token")
        )
        handler = MagicMock()

        with pytest.raises(Unauthorized, match="is not present"):
            _client(loader, handler).execute_proc("run-sample", {})

        handler.assert_not_called()

    def test_user_not_allowed_to_execute(self, config_loader: MagicMock) -> None:
        with pytest.raises(Forbidden) as exc_info:
            _client(config_loader, _respond(403)).execute_proc(
                "run-sample", {"SAMPLE_ARG1": "sample-value"}
            )

        assert str(exc_info.value) == FORBIDDEN

    def test_client_side_connection_error(self, config_loader: MagicMock) -> None:
        client = _client(config_loader, _raise(httpx.ConnectError("Unknown Error")))

        with pytest.raises(NetworkError) as exc_info:
            client.execute_proc("run-sample", {"SAMPLE_ARG1": "sample-value"})

        assert str(exc_info.value) == (
            "Network Error!!!\nPost http://proctor.example.com/jobs/execute: Unknown Error"
        )

    def test_read_timeout(self, config_loader: MagicMock) -> None:
        client = _client(config_loader, _raise(httpx.ReadTimeout("timed out")))

        with pytest.raises(NetworkTimeout) as exc_info:
            client.execute_proc("run-sample", {})

        assert "Post http://proctor.example.com/jobs/execute: timed out" in str(exc_info.value)

    def test_response_without_name(self, config_loader: MagicMock) -> None:
        with pytest.raises(ResponseParseError):
            _client(config_loader, _respond(201, '{"id": 7}')).execute_proc("run-sample", {})

    def test_empty_proc_name_is_invalid_usage(self, config_loader: MagicMock) -> None:
        handler = MagicMock()

        with pytest.raises(InvalidUsageError):
            _client(config_loader, handler).execute_proc("", {})

        handler.assert_not_called()
        config_loader.load.assert_not_called()


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------


class TestBaseUrls:
    @pytest.mark.parametrize(
        ("host", "expected"),
        [
            ("proctor.example.com", "http://proctor.example.com"),
            ("127.0.0.1:5000/", "http://127.0.0.1:5000"),
            ("https://proctor.example.com", "https://proctor.example.com"),
        ],
    )
    def test_http_base_url(self, host: str, expected: str) -> None:
        assert http_base_url(host) == expected

    @pytest.mark.parametrize(
        ("host", "expected"),
        [
            ("proctor.example.com", "ws://proctor.example.com"),
            ("http://127.0.0.1:5000", "ws://127.0.0.1:5000"),
            ("https://proctor.example.com", "wss://proctor.example.com"),
        ],
    )
    def test_ws_base_url(self, host: str, expected: str) -> None:
        assert ws_base_url(host) == expected

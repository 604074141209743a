"""Client layer for talking to ProctorD.

Re-exports the public entry points so callers can write
``from proctor.client import ProcClient``.
"""

from proctor.client.headers import build_auth_headers
from proctor.client.log_stream import LogStreamSession, StreamState
from proctor.client.proc_client import ConfigProvider, ProcClient

__all__ = [
    "ConfigProvider",
    "LogStreamSession",
    "ProcClient",
    "StreamState",
    "build_auth_headers",
]

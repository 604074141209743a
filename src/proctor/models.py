"""Pydantic models shared across all proctor modules.

The models fall into two groups:

**Configuration** -- :class:`ProctorConfig`, read from the user's
``proctor.yaml`` by :class:`~proctor.config.ConfigLoader` and passed
explicitly through every client operation.

**Daemon payloads** -- :class:`VarMetadata`, :class:`EnvVars`,
:class:`ProcMetadata`, :class:`ExecutionRequest` and
:class:`ExecutionHandle`, mirroring the JSON exchanged with ProctorD.

All models are immutable value objects; nothing here holds state between
calls.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class ProctorConfig(BaseModel):
    """Connection settings for one ProctorD instance.

    ``email`` and ``access_token`` may be empty here: the client checks for
    them before any request so the user gets the missing-credential message
    instead of a daemon rejection.

    Example::

        ProctorConfig(
            host="proctor.example.com",
            email="proctor@example.com",
            access_token="access-token",
        )
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(min_length=1, description="Daemon host, optionally with port")
    email: str = Field(default="", description="Value of the Email-Id header")
    access_token: str = Field(default="", description="Value of the Access-Token header")
    connection_timeout_secs: float = Field(
        default=10, gt=0, description="Transport timeout in seconds"
    )

    @property
    def has_credentials(self) -> bool:
        """Whether both the email and the access token are set."""
        return bool(self.email) and bool(self.access_token)


# --- Daemon payloads ---


class VarMetadata(BaseModel):
    """One environment variable a proc accepts (either an arg or a secret)."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""


class EnvVars(BaseModel):
    """The args and secrets a proc declares, in daemon order."""

    model_config = ConfigDict(frozen=True)

    secrets: list[VarMetadata] = Field(default_factory=list)
    args: list[VarMetadata] = Field(default_factory=list)


class ProcMetadata(BaseModel):
    """A listable job definition as returned by ``GET /jobs/metadata``.

    Wire fields the client has no use for (``image_name``) are dropped.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(min_length=1)
    description: str = ""
    env_vars: EnvVars = Field(default_factory=EnvVars)


class ExecutionRequest(BaseModel):
    """Caller input for ``POST /jobs/execute``.

    The proc name travels as a header; only ``args`` forms the JSON body.
    """

    model_config = ConfigDict(frozen=True)

    proc_name: str = Field(min_length=1)
    args: dict[str, str] = Field(default_factory=dict)


class ExecutionHandle(BaseModel):
    """Daemon-assigned identifier of a started run."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str

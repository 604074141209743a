"""proctor -- command-line client for the ProctorD job execution daemon.

The package lets a user list the procs (job definitions) a daemon offers,
start an execution of one of them, and follow the execution's logs over a
WebSocket. The library layer lives in :mod:`proctor.client`; the Typer
command-line front end lives in :mod:`proctor.app`.

Typical workflow::

    proctor config set PROCTOR_HOST=proctor.example.com EMAIL_ID=me@example.com ACCESS_TOKEN=...
    proctor list
    proctor execute run-sample SAMPLE_ARG1=value --logs

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models for configuration and daemon payloads.
    config: Config file location, loading and saving.
    exceptions: Error taxonomy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.2.0"

CLIENT_VERSION = f"v{__version__}"
"""Version string sent to the daemon in the ``Client-Version`` header."""

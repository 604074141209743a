"""Proc commands -- list, describe, execute and follow procs.

These are registered directly on the root app by :func:`proctor.app.main`:

* ``proctor list`` -- every proc the daemon offers.
* ``proctor describe NAME`` -- args and secrets of one proc.
* ``proctor execute NAME [KEY=VALUE ...]`` -- start an execution.
* ``proctor logs EXECUTION`` -- stream an execution's logs.

Every daemon failure is reported with its fixed message and the exit code of
its :class:`~proctor.exceptions.ProctorError` class.
"""

from __future__ import annotations

from typing import Optional

import typer

from proctor.client import ProcClient
from proctor.client.log_stream import Frame
from proctor.exceptions import InvalidUsageError, ProctorError
from proctor.models import ProcMetadata, VarMetadata
from proctor.output import (
    OutputFormat,
    error,
    format_response,
    get_output,
    info,
    print_data,
    print_table,
    success,
)


def parse_key_values(pairs: list[str]) -> dict[str, str]:
    """Turn ``["KEY=VALUE", ...]`` into a dict.

    The value is everything after the first ``=``, so values may contain ``=``.

    Raises:
        InvalidUsageError: If a pair has no ``=`` or an empty key.
    """
    result: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise InvalidUsageError(f"Expected KEY=VALUE, got: {pair!r}")
        result[key] = value
    return result


def _print_frame(frame: Frame) -> None:
    text = frame.decode("utf-8", errors="replace") if isinstance(frame, bytes) else frame
    print_data(text.rstrip("\n"))


def _fail(exc: ProctorError) -> typer.Exit:
    error(str(exc))
    return typer.Exit(code=exc.exit_code)


def _var_rows(variables: list[VarMetadata]) -> list[list[str]]:
    return [[var.name, var.description] for var in variables]


def list_command() -> None:
    """List procs available on the daemon.

    Example::

        proctor list
        proctor --json list
    """
    try:
        procs = ProcClient().list_procs()
    except ProctorError as exc:
        raise _fail(exc) from None

    if not procs:
        info("No procs available.")
        return
    print_table(
        ["Name", "Description"],
        [[proc.name, proc.description] for proc in procs],
        title="Procs",
    )


def describe_command(
    proc_name: str = typer.Argument(help="Name of the proc to describe."),
) -> None:
    """Show the description, args and secrets of a proc.

    Example::

        proctor describe run-sample
    """
    try:
        procs = ProcClient().list_procs()
    except ProctorError as exc:
        raise _fail(exc) from None

    proc: Optional[ProcMetadata] = next((p for p in procs if p.name == proc_name), None)
    if proc is None:
        raise _fail(InvalidUsageError(f"Proc '{proc_name}' not found. Run 'proctor list'."))

    if get_output().format == OutputFormat.JSON:
        format_response(proc.model_dump(mode="json"))
        return

    print_data(f"{proc.name}: {proc.description}")
    if proc.env_vars.args:
        print_table(["Arg", "Description"], _var_rows(proc.env_vars.args), title="Args")
    if proc.env_vars.secrets:
        print_table(["Secret", "Description"], _var_rows(proc.env_vars.secrets), title="Secrets")


def execute_command(
    proc_name: str = typer.Argument(help="Name of the proc to execute."),
    args: Optional[list[str]] = typer.Argument(
        None, help="Proc args as KEY=VALUE pairs.", show_default=False
    ),
    logs: bool = typer.Option(
        False, "--logs", "-l", help="Stream the execution's logs after it starts."
    ),
) -> None:
    """Execute a proc with the given args.

    The execution name is printed to stdout so it can be piped into
    ``proctor logs``.

    Example::

        proctor execute run-sample SAMPLE_ARG1=value
        proctor execute run-sample SAMPLE_ARG1=value --logs
    """
    client = ProcClient()
    try:
        proc_args = parse_key_values(args or [])
        execution_name = client.execute_proc(proc_name, proc_args)
    except ProctorError as exc:
        raise _fail(exc) from None

    success(f"Execution created: {execution_name}")
    print_data(execution_name)

    if logs:
        info(f"Streaming logs for {execution_name}...")
        try:
            client.stream_proc_logs(execution_name, on_frame=_print_frame)
        except ProctorError as exc:
            raise _fail(exc) from None


def logs_command(
    execution_name: str = typer.Argument(help="Execution name returned by 'proctor execute'."),
) -> None:
    """Stream the logs of an execution until it finishes.

    Example::

        proctor logs proctor-777b1dfb-ea27-46d9-b02c-839b75a542e2
    """
    try:
        ProcClient().stream_proc_logs(execution_name, on_frame=_print_frame)
    except ProctorError as exc:
        raise _fail(exc) from None

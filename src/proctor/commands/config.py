"""Config commands -- view and modify ``proctor.yaml``.

Provides the ``proctor config`` sub-command group. Settings are written with
an atomic replace so an interrupted ``set`` never leaves a truncated file.
"""

from __future__ import annotations

import typer

from proctor.output import error, format_response, info, print_data, success


config_app = typer.Typer(no_args_is_help=True)


def _mask(value: str) -> str:
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


@config_app.command("show")
def config_show() -> None:
    """Show the current configuration file contents.

    The access token is masked except for its last four characters.

    Example::

        proctor config show
        proctor --json config show
    """
    from proctor.config import ACCESS_TOKEN_KEY, get_config_path, load_raw_config
    from proctor.exceptions import ConfigInvalid

    path = get_config_path()
    try:
        data = load_raw_config(path)
    except ConfigInvalid as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"Config file: {path}")
    if ACCESS_TOKEN_KEY in data and data[ACCESS_TOKEN_KEY]:
        data[ACCESS_TOKEN_KEY] = _mask(str(data[ACCESS_TOKEN_KEY]))
    format_response(data)


@config_app.command("path")
def config_path() -> None:
    """Print the path of the configuration file."""
    from proctor.config import get_config_path

    print_data(str(get_config_path()))


@config_app.command("set")
def config_set(
    pairs: list[str] = typer.Argument(
        help="Settings as KEY=VALUE (PROCTOR_HOST, EMAIL_ID, ACCESS_TOKEN, "
        "CONNECTION_TIMEOUT_SECS)."
    ),
) -> None:
    """Set one or more configuration values.

    Raises:
        typer.Exit: With code 2 if a pair is malformed, the key is unknown,
            or the timeout is not a positive number.

    Example::

        proctor config set PROCTOR_HOST=proctor.example.com EMAIL_ID=me@example.com
        proctor config set CONNECTION_TIMEOUT_SECS=30
    """
    from proctor.commands.procs import parse_key_values
    from proctor.config import CONFIG_KEYS, TIMEOUT_KEY, load_raw_config, save_raw_config
    from proctor.exceptions import ConfigInvalid, InvalidUsageError

    try:
        updates = parse_key_values(pairs)
    except InvalidUsageError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None

    for key, value in updates.items():
        if key not in CONFIG_KEYS:
            error(f"Unknown config key: {key}. Expected one of: {', '.join(CONFIG_KEYS)}")
            raise typer.Exit(code=2)
        if key == TIMEOUT_KEY:
            try:
                timeout = float(value)
            except ValueError:
                error(f"Expected a number for {key}, got: {value}")
                raise typer.Exit(code=2) from None
            if timeout <= 0:
                error(f"{key} must be greater than zero")
                raise typer.Exit(code=2)

    try:
        data = load_raw_config()
    except ConfigInvalid as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    for key, value in updates.items():
        data[key] = float(value) if key == TIMEOUT_KEY else value

    path = save_raw_config(data)
    for key in updates:
        success(f"Set {key}")
    info(f"Saved to {path}")

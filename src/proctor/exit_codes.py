"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~proctor.exceptions.ProctorError` subclass, so shell
wrappers can tell failure classes apart without parsing stderr.

Example::

    $ proctor list
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- credentials were rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, or the configuration is invalid."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""Credentials are missing, were rejected, or lack permission."""

EXIT_SERVER_ERROR = 5
"""The daemon answered with an unexpected status (5xx or unclassified)."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_STREAM_HANDSHAKE = 8
"""The daemon refused to upgrade the log-streaming connection."""

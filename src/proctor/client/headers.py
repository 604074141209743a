"""Authentication header construction for daemon requests.

ProctorD identifies callers by three headers sent on every request and on the
log-streaming handshake. Execution requests add a fourth naming the proc.
"""

from __future__ import annotations

from proctor import CLIENT_VERSION
from proctor.models import ProctorConfig

USER_EMAIL_HEADER = "Email-Id"
ACCESS_TOKEN_HEADER = "Access-Token"
CLIENT_VERSION_HEADER = "Client-Version"
PROC_NAME_HEADER = "Proc-Name"


def build_auth_headers(config: ProctorConfig, proc_name: str | None = None) -> dict[str, str]:
    """Return the header set authenticating a request as the configured user.

    Args:
        config: Loaded configuration supplying the email and access token.
        proc_name: Proc being executed. Only execution requests pass this.

    Returns:
        A new dict; callers may add to it freely.
    """
    headers = {
        USER_EMAIL_HEADER: config.email,
        ACCESS_TOKEN_HEADER: config.access_token,
        CLIENT_VERSION_HEADER: CLIENT_VERSION,
    }
    if proc_name is not None:
        headers[PROC_NAME_HEADER] = proc_name
    return headers

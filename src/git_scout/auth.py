"""SSH authentication for fetches, backed by the running ssh-agent.

The agent is only queried for its keys: git's own ssh client does the actual
signing through the same socket. Querying first lets a scan skip a repository
cleanly when no agent or no key is available, instead of hanging on a
password prompt.
"""

import logging
import os
import re
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

import paramiko

from .constants import APP_NAME, DEFAULT_REMOTE, DEFAULT_SSH_USER, SSH_AUTH_SOCK_ENV
from .exceptions import AgentUnavailableError, NoSignersError, URLParseError
from .git_wrapper import GitRepo
from .models import Remote

logger = logging.getLogger(APP_NAME)

# user@host:path, with no scheme in front (scp-like syntax).
_SCP_LIKE = re.compile(r"^(?P<user>[^@/:]+)@(?P<host>[^@/:]+):(?P<path>.*)$")


def get_signers_from_agent() -> list[Any]:
    """Lists the keys held by the ssh-agent named by SSH_AUTH_SOCK.

    The agent connection is closed again before returning.

    Returns:
        list: The agent's keys (paramiko AgentKey objects), possibly empty.

    Raises:
        AgentUnavailableError: If SSH_AUTH_SOCK is unset, does not name a socket,
            or the agent does not answer.
    """
    socket_path = os.environ.get(SSH_AUTH_SOCK_ENV)
    if not socket_path:
        raise AgentUnavailableError(f"{SSH_AUTH_SOCK_ENV} is not set")
    if not Path(socket_path).is_socket():
        raise AgentUnavailableError(f"No agent socket at {socket_path}")

    try:
        agent = paramiko.Agent()
    except paramiko.SSHException as e:
        raise AgentUnavailableError(f"Could not talk to ssh-agent: {e}") from e

    # paramiko reports an unreachable agent as an empty key list.
    if agent._conn is None:
        agent.close()
        raise AgentUnavailableError(f"No ssh-agent listening at {socket_path}")

    try:
        return list(agent.get_keys())
    finally:
        agent.close()


def derive_username(url: str) -> str | None:
    """Extracts the SSH login from a remote URL.

    Supports both scp-like (user@host:path) and URL (ssh://user@host/path) forms.

    Args:
        url (str): The remote URL.

    Returns:
        str | None: The user, or None if the URL carries none.

    Raises:
        URLParseError: If a URL-form remote cannot be parsed.
    """
    match = _SCP_LIKE.match(url)
    if match:
        return match.group("user")

    try:
        parts = urlsplit(url)
        # Accessing the port validates it.
        _ = parts.port
    except ValueError as e:
        raise URLParseError(f"Could not parse remote URL '{url}': {e}") from e
    return parts.username or None


def origin_username(
    remotes: list[Remote],
    remote_name: str = DEFAULT_REMOTE,
    default_user: str = DEFAULT_SSH_USER,
) -> str:
    """Determines the SSH login for a named remote.

    Args:
        remotes (list[Remote]): The repository's remotes.
        remote_name (str, optional): Which remote to use. Defaults to 'origin'.
        default_user (str, optional): Fallback login. Defaults to 'git'.

    Returns:
        str: The login from the remote's first URL, or the fallback.
    """
    username = None
    for remote in remotes:
        if remote.name == remote_name and remote.urls:
            username = derive_username(remote.urls[0])
    return username or default_user


@dataclass
class SSHAgentAuth:
    """Authentication settings for a git subprocess talking SSH.

    Attributes:
        username (str): SSH login to use.
        signers (list): Keys reported by the agent.
        socket_path (str | None): The agent socket ssh should use.
        verify_host_keys (bool): When False, any host key is accepted.
    """

    username: str
    signers: list[Any] = field(default_factory=list)
    socket_path: str | None = None
    verify_host_keys: bool = False

    def ssh_command(self) -> str:
        cmd = ["ssh", "-o", "BatchMode=yes", "-l", self.username]
        if self.socket_path:
            cmd.extend(["-o", f"IdentityAgent={self.socket_path}"])
        if not self.verify_host_keys:
            cmd.extend(
                [
                    "-o",
                    "StrictHostKeyChecking=no",
                    "-o",
                    "UserKnownHostsFile=/dev/null",
                    "-o",
                    "LogLevel=ERROR",
                ]
            )
        return shlex.join(cmd)

    def env(self) -> dict[str, str]:
        """Environment overrides to pass to `git fetch`."""
        env = {
            "GIT_SSH_COMMAND": self.ssh_command(),
            "GIT_TERMINAL_PROMPT": "0",
        }
        if self.socket_path:
            env[SSH_AUTH_SOCK_ENV] = self.socket_path
        return env


def build_auth(
    repo: GitRepo,
    remote_name: str = DEFAULT_REMOTE,
    default_user: str = DEFAULT_SSH_USER,
    verify_host_keys: bool = False,
) -> SSHAgentAuth:
    """Builds the SSH authentication for fetching from a repository's remote.

    The agent is consulted before the remote configuration is read, so a
    missing agent is reported even when the remotes cannot be listed.

    Args:
        repo (GitRepo): The repository that will be fetched.
        remote_name (str, optional): The remote that will be fetched.
        default_user (str, optional): Login used when the URL has none.
        verify_host_keys (bool, optional): Whether ssh checks known_hosts.

    Returns:
        SSHAgentAuth: The authentication handle.

    Raises:
        AgentUnavailableError: If the agent cannot be reached.
        NoSignersError: If the agent holds no keys.
        RemoteLookupError: If the remotes cannot be listed.
        URLParseError: If the remote URL cannot be parsed.
    """
    signers = get_signers_from_agent()
    if not signers:
        raise NoSignersError("No SSH keys loaded in ssh-agent")

    username = origin_username(repo.remotes(), remote_name, default_user)
    logger.debug(f"SSH login for '{remote_name}': {username} ({len(signers)} keys)")

    return SSHAgentAuth(
        username=username,
        signers=signers,
        socket_path=os.environ.get(SSH_AUTH_SOCK_ENV),
        verify_host_keys=verify_host_keys,
    )

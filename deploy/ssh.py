"""
SSH Deployment Execution Module

Runs a single deployment command on the host of a resolved environment:
one password-authenticated SSH connection, one session, one command.

Example:
    from deploy.ssh import execute

    output = execute(env)
    print(output)
"""

import time
from typing import List, Tuple

import paramiko

from .config import (
    get_connection_timeout,
    get_known_hosts_policy,
    debug_log,
)
from .errors import CommandError, DeployConnectionError, SessionError
from .types import ServerEnvironment


DEFAULT_SSH_PORT = 22
RECV_BYTES = 32768
POLL_INTERVAL = 0.05


def _get_host_key_policy() -> paramiko.MissingHostKeyPolicy:
    """Get the appropriate host key policy based on configuration"""
    policy = get_known_hosts_policy()
    if policy == 'strict':
        return paramiko.RejectPolicy()
    elif policy == 'auto_add':
        return paramiko.AutoAddPolicy()
    else:
        return paramiko.WarningPolicy()


def split_server(server: str) -> Tuple[str, int]:
    """
    Split a 'host:port' string.

    IPv6 addresses must be bracketed to carry a port ('[::1]:2222').
    Without a port the standard SSH port is used.

    Raises:
        DeployConnectionError: If the host is empty or the port is not a valid number
    """
    server = server.strip()
    port_str = ''

    if server.startswith('['):
        host, _, rest = server[1:].partition(']')
        if rest.startswith(':'):
            port_str = rest[1:]
    elif server.count(':') == 1:
        host, port_str = server.split(':', 1)
    else:
        host = server

    if not host:
        raise DeployConnectionError(f"Invalid server address '{server}': missing host")

    if not port_str:
        return host, DEFAULT_SSH_PORT

    try:
        port = int(port_str)
    except ValueError:
        raise DeployConnectionError(f"Invalid server address '{server}': bad port '{port_str}'")
    if not 0 < port < 65536:
        raise DeployConnectionError(f"Invalid server address '{server}': port out of range")

    return host, port


def build_command(env: ServerEnvironment) -> str:
    """Remote shell line: change to the environment's directory, then run its command"""
    return f"cd {env['dir']} && {env['command']}"


def _connect(client: paramiko.SSHClient, host: str, port: int, env: ServerEnvironment) -> None:
    debug_log(f"Connecting to {host}:{port} as {env['user']}")

    try:
        client.connect(
            hostname=host,
            port=port,
            username=env['user'],
            password=env['pass'],
            timeout=get_connection_timeout(),
            allow_agent=False,
            look_for_keys=False,
        )
    except paramiko.AuthenticationException as e:
        raise DeployConnectionError(f"Authentication failed for {env['user']}@{host}:{port}: {e}") from e
    except paramiko.SSHException as e:
        raise DeployConnectionError(f"SSH error connecting to {host}:{port}: {e}") from e
    except TimeoutError as e:
        raise DeployConnectionError(f"Connection timeout to {host}:{port}: {e}") from e
    except OSError as e:
        raise DeployConnectionError(f"Could not connect to {host}:{port}: {e}") from e


def _drain(channel: paramiko.Channel) -> Tuple[bytes, bytes]:
    """
    Read stdout and stderr together until the command has exited.

    Both streams share the channel window, so unread stderr would stall a
    command that is still writing stdout. stderr is kept only for error reports.
    """
    stdout_chunks: List[bytes] = []
    stderr_chunks: List[bytes] = []

    while True:
        idle = True
        if channel.recv_ready():
            stdout_chunks.append(channel.recv(RECV_BYTES))
            idle = False
        if channel.recv_stderr_ready():
            stderr_chunks.append(channel.recv_stderr(RECV_BYTES))
            idle = False
        if idle:
            if channel.exit_status_ready():
                break
            time.sleep(POLL_INTERVAL)

    # data that arrived together with the exit status
    while channel.recv_ready():
        stdout_chunks.append(channel.recv(RECV_BYTES))
    while channel.recv_stderr_ready():
        stderr_chunks.append(channel.recv_stderr(RECV_BYTES))

    return b''.join(stdout_chunks), b''.join(stderr_chunks)


def _run(client: paramiko.SSHClient, command: str) -> str:
    transport = client.get_transport()
    if transport is None or not transport.is_active():
        raise SessionError("SSH transport is not active")

    try:
        channel = transport.open_session()
    except (paramiko.SSHException, OSError) as e:
        raise SessionError(f"Failed to open session: {e}") from e

    try:
        debug_log(f"Session open, executing command: {command}")

        try:
            channel.exec_command(command)
            stdout_bytes, stderr_bytes = _drain(channel)
            exit_code = channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            raise CommandError(f"Failed to run command: {e}") from e

        stdout_text = stdout_bytes.decode('utf-8', errors='replace')
        stderr_text = stderr_bytes.decode('utf-8', errors='replace')

        debug_log(f"Command completed: exit_code={exit_code}")

        if exit_code != 0:
            message = f"Process exited with status {exit_code}"
            if stderr_text.strip():
                message += f": {stderr_text.strip()}"
            raise CommandError(message, exit_code=exit_code, output=stdout_text)

        return stdout_text
    finally:
        channel.close()


def execute(env: ServerEnvironment) -> str:
    """
    Run the environment's command on its server.

    Args:
        env: Resolved environment (server, user, pass, dir, command)

    Returns:
        Captured standard output of the command

    Raises:
        DeployConnectionError: Connection or authentication failed
        SessionError: The session could not be opened
        CommandError: The command could not be run or exited non-zero

    Example:
        output = execute(resolve(server_list, "testserver", "prod"))
    """
    host, port = split_server(env['server'])
    command = build_command(env)

    client = paramiko.SSHClient()
    client.set_missing_host_key_policy(_get_host_key_policy())
    try:
        _connect(client, host, port, env)
        return _run(client, command)
    finally:
        client.close()

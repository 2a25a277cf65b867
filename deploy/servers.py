"""
Server List Loading and Environment Resolution

servers.json holds a list of servers, each with named deployment
environments:

    {
        "servers": [
            {
                "name": "testserver",
                "envs": [
                    {
                        "name": "prod",
                        "server": "example.com:22",
                        "user": "deployer",
                        "pass": "secret",
                        "dir": "/srv/app",
                        "command": "./restart.sh"
                    }
                ]
            }
        ]
    }

Example:
    from deploy.servers import find_config_file, load_server_list, resolve

    server_list = load_server_list(find_config_file())
    env = resolve(server_list, "testserver", "prod")
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import get_servers_file, debug_log
from .errors import ConfigLoadError, EnvironmentNotFound
from .types import ServerConfig, ServerEnvironment, ServerList


CONFIG_FILE_NAME = 'servers.json'

_ENV_FIELDS = ('name', 'server', 'user', 'pass', 'dir', 'command')


def _program_dir() -> Optional[Path]:
    """Directory holding the running program, None if it cannot be determined"""
    if not sys.argv or not sys.argv[0]:
        return None
    try:
        return Path(sys.argv[0]).resolve().parent
    except OSError:
        return None


def find_config_file(explicit: Optional[str] = None) -> Path:
    """
    Locate servers.json.

    Args:
        explicit: Path given on the command line, used as-is when set

    Returns:
        The first of: explicit path, DEPLOY_SERVERS_FILE, servers.json next to
        the program (only if it exists there), servers.json in the current directory
    """
    if explicit:
        return Path(explicit)

    configured = get_servers_file()
    if configured:
        return Path(configured)

    program_dir = _program_dir()
    if program_dir is not None:
        candidate = program_dir / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate

    return Path.cwd() / CONFIG_FILE_NAME


def _as_list(value: Any, what: str, path: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigLoadError(path, f"'{what}' must be a list, got {type(value).__name__}")
    return value


def _as_object(value: Any, what: str, path: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigLoadError(path, f"{what} must be an object, got {type(value).__name__}")
    return value


def _as_str(value: Any) -> str:
    if value is None:
        return ''
    return value if isinstance(value, str) else str(value)


def parse_server_list(data: Any, path: str = '<memory>') -> ServerList:
    """
    Build a ServerList from decoded JSON.

    Missing fields default to empty strings and empty lists; unknown keys
    are ignored.

    Raises:
        ConfigLoadError: If the document does not have the expected shape
    """
    root = _as_object(data, 'servers.json root', path)

    servers: List[ServerConfig] = []
    for raw_server in _as_list(root.get('servers'), 'servers', path):
        raw_server = _as_object(raw_server, 'server entry', path)

        envs: List[ServerEnvironment] = []
        for raw_env in _as_list(raw_server.get('envs'), 'envs', path):
            raw_env = _as_object(raw_env, 'environment entry', path)
            envs.append({field: _as_str(raw_env.get(field)) for field in _ENV_FIELDS})

        servers.append({'name': _as_str(raw_server.get('name')), 'envs': envs})

    return {'servers': servers}


def load_server_list(path: Path) -> ServerList:
    """
    Read and parse servers.json.

    Args:
        path: Location of the file

    Returns:
        The parsed ServerList

    Raises:
        ConfigLoadError: If the file is unreadable, not valid JSON, or malformed
    """
    try:
        with open(path, 'rb') as f:
            raw = f.read()
    except OSError as e:
        raise ConfigLoadError(str(path), str(e)) from e

    # invalid UTF-8 sequences become U+FFFD instead of failing the load
    text = raw.decode('utf-8', errors='replace')

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(str(path), f"invalid JSON: {e}") from e

    server_list = parse_server_list(data, str(path))
    debug_log(f"Loaded {len(server_list['servers'])} server(s) from {path}")
    return server_list


def resolve(server_list: ServerList, server_name: str, env_name: str) -> ServerEnvironment:
    """
    Find the environment to deploy.

    Servers and their environments are scanned in list order and the first
    pair matching both names wins. A later server sharing server_name is still
    searched when an earlier one lacks env_name.

    Args:
        server_list: Loaded configuration
        server_name: Server name, compared exactly
        env_name: Environment name, compared exactly

    Returns:
        The matching environment as stored in server_list

    Raises:
        EnvironmentNotFound: If no such server/environment pair exists
    """
    for server in server_list['servers']:
        if server['name'] != server_name:
            continue
        for env in server['envs']:
            if env['name'] == env_name:
                debug_log(f"Resolved {server_name}:{env_name} to {env['server']}")
                return env

    raise EnvironmentNotFound(server_name, env_name)

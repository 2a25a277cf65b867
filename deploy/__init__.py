"""
Deploy Tool - Single-shot Remote Deployment

Looks up a server/environment pair in servers.json, connects to the
environment's host over SSH and runs its deployment command in its
working directory.

Example:
    from deploy import find_config_file, load_server_list, resolve, execute

    server_list = load_server_list(find_config_file())
    output = execute(resolve(server_list, "testserver", "prod"))
"""

__version__ = '0.0.1'

from .config import get_config, set_config, reset_config

from .errors import (
    DeployError,
    ConfigLoadError,
    EnvironmentNotFound,
    DeployConnectionError,
    SessionError,
    CommandError,
)

from .servers import (
    find_config_file,
    load_server_list,
    parse_server_list,
    resolve,
)

from .ssh import execute

__all__ = [
    # Configuration
    'get_config',
    'set_config',
    'reset_config',

    # Errors
    'DeployError',
    'ConfigLoadError',
    'EnvironmentNotFound',
    'DeployConnectionError',
    'SessionError',
    'CommandError',

    # Functions
    'find_config_file',
    'load_server_list',
    'parse_server_list',
    'resolve',
    'execute',
]

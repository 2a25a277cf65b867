"""
Type definitions for the servers.json deployment configuration
"""

from typing import TypedDict, List


# Deployment target. 'pass' is a keyword, so the functional syntax is required.
ServerEnvironment = TypedDict('ServerEnvironment', {
    'name': str,
    'server': str,
    'user': str,
    'pass': str,
    'dir': str,
    'command': str,
})


class ServerConfig(TypedDict):
    """Named group of deployment environments"""
    name: str
    envs: List[ServerEnvironment]


class ServerList(TypedDict):
    """Root of a loaded servers.json"""
    servers: List[ServerConfig]

"""
Exceptions raised by the deploy tool
"""

from typing import Optional


class DeployError(Exception):
    """Base class for every deployment failure"""


class ConfigLoadError(DeployError):
    """servers.json could not be read or decoded"""
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(reason)


class EnvironmentNotFound(DeployError):
    """No environment matches the requested server and environment names"""
    def __init__(self, server_name: str, env_name: str):
        self.server_name = server_name
        self.env_name = env_name
        super().__init__(f"No such server or environment found ({server_name}, {env_name})")


class DeployConnectionError(DeployError):
    """Network or authentication failure while connecting to the remote host"""


class SessionError(DeployError):
    """The remote session could not be opened"""


class CommandError(DeployError):
    """The remote command could not be run or exited non-zero"""
    def __init__(self, message: str, exit_code: Optional[int] = None, output: str = ''):
        self.exit_code = exit_code
        self.output = output
        super().__init__(message)

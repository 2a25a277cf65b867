"""
Deploy Tool Configuration

Tool settings are loaded from environment variables, typically set via a
.env.deploy file in the directory the tool is run from. The server list itself
lives in servers.json (see deploy.servers).

Environment Variables:
    DEPLOY_SERVERS_FILE: Path to servers.json (default: next to the program, then cwd)
    DEPLOY_KNOWN_HOSTS_POLICY: Host key policy (strict/auto_add/ignore, default: auto_add)
    DEPLOY_CONNECTION_TIMEOUT: Connection timeout in seconds (default: 0, no timeout)
    DEPLOY_DEBUG: Enable debug logging (default: false)
"""

import base64
import binascii
import os
from typing import Any, Dict, Optional
from pathlib import Path


def _decode_env_value(value: str) -> str:
    """
    Decode environment variable value.
    Values prefixed with 'base64:' are base64-decoded.
    """
    if value.startswith('base64:'):
        try:
            return base64.b64decode(value[7:]).decode('utf-8')
        except (binascii.Error, UnicodeDecodeError):
            return value
    return value


def _load_env_file(file_path: Path) -> None:
    """Load KEY=VALUE lines from an env file; variables already set are kept."""
    if not file_path.is_file():
        return

    for line in file_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        os.environ.setdefault(key.strip(), _decode_env_value(value.strip()))


_PACKAGE_DIR = Path(__file__).parent


def _load_config_env():
    """
    Load environment variables from config files.

    Search order (first found wins for each variable):
    1. Current working directory .env.deploy
    2. Package's own config.env
    """
    _load_env_file(Path.cwd() / ".env.deploy")
    _load_env_file(_PACKAGE_DIR / "config.env")


# Auto-load env files when module is imported
_load_config_env()


class DeployConfig:
    """Deploy Tool configuration"""

    def __init__(self):
        self.servers_file: str = os.getenv('DEPLOY_SERVERS_FILE', '')
        self.known_hosts_policy: str = os.getenv('DEPLOY_KNOWN_HOSTS_POLICY', 'auto_add')
        self.debug: bool = os.getenv('DEPLOY_DEBUG', '').lower() == 'true'

        timeout = os.getenv('DEPLOY_CONNECTION_TIMEOUT', '').strip()
        try:
            self.connection_timeout: int = max(int(timeout or 0), 0)
        except ValueError:
            self.connection_timeout = 0
            if self.debug:
                print(f'[Deploy] Ignoring invalid DEPLOY_CONNECTION_TIMEOUT={timeout!r}')


# Global configuration instance
_config = DeployConfig()


def get_config() -> Dict[str, Any]:
    """Get current configuration"""
    return {
        'servers_file': _config.servers_file,
        'known_hosts_policy': _config.known_hosts_policy,
        'connection_timeout': _config.connection_timeout,
        'debug': _config.debug,
    }


def set_config(new_config: Dict[str, Any]) -> None:
    """Set configuration (merges with existing config)"""
    # Helper to get value with or without deploy_ prefix
    def get_val(key: str) -> Any:
        return new_config.get(f'deploy_{key}') or new_config.get(key)

    if get_val('servers_file'):
        _config.servers_file = str(get_val('servers_file'))
    if get_val('known_hosts_policy'):
        _config.known_hosts_policy = get_val('known_hosts_policy')
    if get_val('connection_timeout') is not None:
        _config.connection_timeout = int(get_val('connection_timeout'))
    if 'debug' in new_config:
        _config.debug = bool(new_config['debug'])


def reset_config() -> None:
    """Reset configuration to defaults (from environment variables)"""
    global _config
    _config = DeployConfig()


def get_servers_file() -> str:
    """Get the configured servers.json path, empty if not set"""
    return _config.servers_file


def get_known_hosts_policy() -> str:
    """Get known hosts verification policy"""
    return _config.known_hosts_policy


def get_connection_timeout() -> Optional[int]:
    """Get connection timeout in seconds, None when unbounded"""
    return _config.connection_timeout or None


def debug_log(message: str, *args: Any) -> None:
    """Debug log helper"""
    if _config.debug:
        if args:
            print(f'[Deploy] {message}', *args)
        else:
            print(f'[Deploy] {message}')

"""Command line entry point: resolve one environment and deploy it."""

import argparse
import sys
from typing import List, NoReturn, Optional

from . import __version__
from .config import set_config, debug_log
from .errors import ConfigLoadError, DeployError
from .servers import find_config_file, load_server_list, resolve
from .ssh import execute


USAGE = (
    "Usage: deploy --server=serverName --env=envName\n"
    "Example: deploy --server=testserver --env=prod"
)


class _UsageError(Exception):
    pass


class _ArgumentParser(argparse.ArgumentParser):
    """Raises instead of exiting, so main() decides the exit status"""

    def error(self, message: str) -> NoReturn:
        raise _UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(prog="deploy", description="Run a configured deployment command over SSH.")
    ap.add_argument("--server", default="", help="Server to deploy")
    ap.add_argument("--env", default="", help="Environment to deploy")
    ap.add_argument("--config", default=None, help="Path to servers.json")
    ap.add_argument("--debug", action="store_true", help="Print debug output")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    print(f"Deploy v{__version__}")

    try:
        args, _ = _build_parser().parse_known_args(argv)
    except _UsageError as e:
        print(f"Invalid arguments: {e}")
        print(USAGE)
        return 1

    if args.debug:
        set_config({'debug': True})

    if not args.server or not args.env:
        print(USAGE)
        return 1

    config_file = find_config_file(args.config)
    debug_log(f"Using config file {config_file}")

    try:
        server_list = load_server_list(config_file)
    except ConfigLoadError as e:
        print(f"Could not open servers.json: {e} (tried with path {e.path})")
        return 1

    print(f"Initiating deployment of {args.server}:{args.env}")
    try:
        output = execute(resolve(server_list, args.server, args.env))
    except DeployError as e:
        print(f"Error while deploying: {e}")
        return 1

    print("Deployment succeeded!")
    print(f"Output:\n{output}")
    return 0


def run() -> None:
    sys.exit(main())

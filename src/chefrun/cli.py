"""Command-line entrypoint for converging targets with a local policy bundle."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from chefrun.actions.converge_target import converge
from chefrun.config import ChefRunConfig
from chefrun.errors import ChefRunError, MultiJobFailure
from chefrun.jobs import ConvergeJob, converge_all
from chefrun.target_host import TargetHost

logger = logging.getLogger(__name__)

PROGRESS = {
    "creating_remote_policy": "Creating remote policy bundle",
    "running_chef": "Converging target",
    "success": "Successfully converged target",
    "converge_error": "Failed to converge target",
}


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")
    else:
        root.setLevel(level)


def _print_progress(host: str, message: str, args: tuple) -> None:
    text = PROGRESS.get(message)
    if text is not None:
        print(f"[{host}] {text}")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="chefrun", description="Converge remote targets with a local policy bundle")
    parser.add_argument("--verbose", "-V", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", dest="settings_file", type=str, default=None, help="YAML settings file")
    parser.add_argument("--env-file", dest="env_file", type=str, default=None, help=".env file to load")
    subparsers = parser.add_subparsers(dest="command", required=True)

    converge_parser = subparsers.add_parser("converge", help="Stage a policy bundle and run chef-client on targets")
    converge_parser.add_argument("--host", dest="hosts", action="append", required=True, help="Target host (repeat for several)")
    converge_parser.add_argument("--policy", type=str, required=True, help="Local policy bundle archive")
    converge_parser.add_argument("--port", type=int, default=None, help="SSH port (default from config: 22)")
    converge_parser.add_argument("--user", type=str, default=None, help="SSH username (default from config: root)")
    converge_parser.add_argument("--ssh-key", dest="ssh_key", type=str, default=None, help="Path to SSH private key")
    converge_parser.add_argument("--password", type=str, default=None, help="SSH password")
    converge_parser.add_argument("--cache-path", dest="cache_path", type=str, default=None, help="Cache path on the target")
    converge_parser.add_argument("--os", dest="base_os", type=str, default="linux", choices=["linux", "windows"], help="Target operating system")
    return parser.parse_args(argv)


def _build_target(host: str, args: argparse.Namespace, config: ChefRunConfig) -> TargetHost:
    return TargetHost.from_credentials(
        host=host,
        port=args.port or config.ssh_port,
        username=args.user or config.ssh_user,
        private_key_path=args.ssh_key or config.ssh_key,
        password=args.password,
        base_os=args.base_os,
        command_timeout=config.command_timeout,
    )


def handle_converge(args: argparse.Namespace, config: ChefRunConfig) -> int:
    policy = Path(args.policy).expanduser()
    if not policy.is_file():
        print(f"Policy bundle not found: {policy}", file=sys.stderr)
        return 2

    if len(args.hosts) == 1:
        host = args.hosts[0]
        with _build_target(host, args, config) as target:
            converge(
                target,
                policy,
                cache_path=args.cache_path,
                config=config,
                notification_handler=lambda message, data: _print_progress(host, message, data),
            )
        return 0

    jobs = [ConvergeJob(_build_target(h, args, config), policy, args.cache_path) for h in args.hosts]
    converge_all(jobs, config=config, notification_handler=_print_progress)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = ChefRunConfig.load(
            settings_file=Path(args.settings_file) if args.settings_file else None,
            env_file=Path(args.env_file) if args.env_file else None,
        )
    except (ValueError, FileNotFoundError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    try:
        return handle_converge(args, config)
    except MultiJobFailure as exc:
        print(exc, file=sys.stderr)
        for job in exc.jobs:
            print(f"  [{job.host}] {job.exception}", file=sys.stderr)
        return 1
    except ChefRunError as exc:
        print(exc, file=sys.stderr)
        return 1
    except Exception as exc:
        logger.debug("Unexpected failure", exc_info=True)
        print(f"Converge failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

"""
Command line entry point.

Usage:
    webbundle                     # same as `webbundle release`
    webbundle release [--skip-build] [--debug] [--archive PATH]
    webbundle list-assets         # show what the archive would contain
    webbundle config              # print the resolved configuration

Exit status is 0 on success, 2 for configuration errors, the failing tool's
exit status when cargo or wasm-bindgen fail, and 1 otherwise.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from webbundle import yaml as config_loader
from webbundle.config import ReleaseConfig, load_config
from webbundle.errors import ConfigError, ReleaseError
from webbundle.logging import configure, get_logger
from webbundle.pipeline import release
from webbundle.stages import ArchiverStage

log = get_logger('cli')

COMMANDS = ('release', 'list-assets', 'config')


def _common_options() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        '--config',
        type=Path,
        default=None,
        help='Release config file (default: release.yaml/.yml/.json in the project dir)',
    )
    parent.add_argument(
        '--project-dir',
        type=Path,
        default=None,
        help='Crate root (default: current directory)',
    )
    parent.add_argument('--name', default=None, help='Crate name')
    parent.add_argument('--archive', type=Path, default=None, help='Archive to write')
    parent.add_argument(
        '--debug',
        action='store_true',
        help='Build with the debug profile instead of release',
    )
    verbosity = parent.add_mutually_exclusive_group()
    verbosity.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    verbosity.add_argument('-q', '--quiet', action='store_true', help='Only warnings and errors')
    return parent


def build_parser() -> argparse.ArgumentParser:
    common = _common_options()
    parser = argparse.ArgumentParser(
        prog='webbundle',
        description='Build a Rust/WebAssembly game and package it for the web',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    release_parser = subparsers.add_parser(
        'release', parents=[common], help='Compile, generate bindings and archive (default)'
    )
    release_parser.add_argument(
        '--skip-build',
        action='store_true',
        help='Reuse the existing compiled artifact',
    )
    subparsers.add_parser(
        'list-assets', parents=[common], help='List the entries a release archive would contain'
    )
    subparsers.add_parser('config', parents=[common], help='Print the resolved configuration')
    return parser


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.name:
        overrides['name'] = args.name
    if args.archive:
        overrides.setdefault('archive', {})['path'] = str(args.archive)
    if args.debug:
        overrides.setdefault('compiler', {})['profile'] = 'debug'
    return overrides


def _log_level(args: argparse.Namespace) -> int:
    if args.verbose:
        return logging.DEBUG
    if args.quiet:
        return logging.WARNING
    return logging.INFO


def _exit_code(error: ReleaseError) -> int:
    if isinstance(error, ConfigError):
        return 2
    returncode = getattr(error, 'returncode', None)
    if returncode:
        return returncode
    return 1


def cmd_release(config: ReleaseConfig, args: argparse.Namespace) -> int:
    result = release(config, skip_build=getattr(args, 'skip_build', False))
    print(f"Release archive: {result.archive} ({len(result.entries)} entries)")
    return 0


def cmd_list_assets(config: ReleaseConfig, args: argparse.Namespace) -> int:
    for entry in ArchiverStage(config).plan():
        print(entry.arcname)
    return 0


def cmd_config(config: ReleaseConfig, args: argparse.Namespace) -> int:
    print(config_loader.dumps(config.model_dump(mode='json')), end='')
    return 0


HANDLERS = {
    'release': cmd_release,
    'list-assets': cmd_list_assets,
    'config': cmd_config,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit status."""
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)
    # No subcommand means release; top-level --help still shows the command list
    if not argv or argv[0] not in COMMANDS + ("-h", "--help"):
        argv.insert(0, 'release')

    parser = build_parser()
    args = parser.parse_args(argv)

    configure(_log_level(args))

    try:
        config = load_config(args.config, project_dir=args.project_dir, overrides=_overrides(args))
        return HANDLERS[args.command](config, args)
    except ReleaseError as e:
        log.error(str(e))
        for detail in getattr(e, 'errors', [])[1:]:
            log.error(f"  {detail}")
        return _exit_code(e)


if __name__ == '__main__':
    sys.exit(main())

#!/usr/bin/env python3
"""
agent-ignore: inspect and manage the agent ignore boundary

    agent-ignore check PATH...      which paths tools may touch
    agent-ignore filter < paths     keep only allowed paths
    agent-ignore args [DIR]         flags for fd/rg started in DIR
    agent-ignore validate FILE      report problems in a rule file
    agent-ignore init [DIR]         create a starter .agentignore
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .constants import IGNORE_FILENAME
from .engine import IgnoreEngine
from .errors import RuleFileParseError
from .file_loader import load_rule_file
from .init import init_ignore_file
from agent_tools.utils import configure_logging


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='agent-ignore',
        description=f'Inspect the {IGNORE_FILENAME} access boundary used by agent tools'
    )
    parser.add_argument(
        '--global-file',
        type=Path,
        help='Global rule file to use instead of the platform default'
    )
    parser.add_argument(
        '--lenient',
        action='store_true',
        help='Continue without global rules if the global file does not parse'
    )
    parser.add_argument(
        '--log-level',
        help='Log level (TRACE, DEBUG, INFO, WARNING, ERROR)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    check = subparsers.add_parser('check', help='Report whether paths are ignored')
    check.add_argument('paths', nargs='+', help='Paths to check')

    subparsers.add_parser('filter', help='Read paths from stdin, print the allowed ones')

    args_cmd = subparsers.add_parser('args', help='Print enforcement flags for fd/rg')
    args_cmd.add_argument('working_dir', nargs='?', default='.',
                          help='Directory the scanner runs in (default: current directory)')

    validate = subparsers.add_parser('validate', help='Validate a rule file')
    validate.add_argument('file', type=Path, help='Rule file to validate')

    init = subparsers.add_parser('init', help=f'Create a starter {IGNORE_FILENAME}')
    init.add_argument('path', nargs='?', default='.', type=Path,
                      help=f'Directory where to create {IGNORE_FILENAME} (default: current directory)')
    init.add_argument('--force', '-f', action='store_true',
                      help=f'Overwrite existing {IGNORE_FILENAME} file')
    init.add_argument('--minimal', '-m', action='store_true',
                      help='Only the essential patterns')
    init.add_argument('--add', '-a', action='append', dest='patterns',
                      help='Add custom pattern (can be used multiple times)')

    return parser


def _build_engine(args) -> IgnoreEngine:
    kwargs = {}
    if args.global_file is not None:
        kwargs['global_ignore_file'] = args.global_file
    if args.lenient:
        return IgnoreEngine.lenient(**kwargs)
    return IgnoreEngine(**kwargs)


def _cmd_check(engine: IgnoreEngine, args) -> int:
    blocked = 0
    for path in args.paths:
        result = engine.check(path)
        if result.should_ignore:
            blocked += 1
            print(f"ignored\t{path}\t{result.source.origin_file}")
        else:
            print(f"allowed\t{path}")
    return 1 if blocked else 0


def _cmd_filter(engine: IgnoreEngine, args) -> int:
    paths = [line.rstrip('\n') for line in sys.stdin if line.strip()]
    for path in engine.filter_paths(paths):
        print(path)
    return 0


def _cmd_args(engine: IgnoreEngine, args) -> int:
    for token in engine.get_enforcement_args(args.working_dir):
        print(token)
    return 0


def _cmd_validate(args) -> int:
    info = load_rule_file(args.file)
    for error in info.errors:
        print(f"{args.file}:{error.line}: error: {error.message}", file=sys.stderr)
    for warning in info.warnings:
        print(f"{args.file}:{warning.line}: warning: {warning.message} ({warning.pattern})",
              file=sys.stderr)
    if info.is_valid:
        print(f"{args.file}: {len(info.patterns)} patterns OK")
        return 0
    return 1


def _cmd_init(args) -> int:
    if not args.path.is_dir():
        print(f"Error: {args.path} is not a directory", file=sys.stderr)
        return 2

    created = init_ignore_file(
        path=args.path,
        force=args.force,
        minimal=args.minimal,
        custom_patterns=args.patterns
    )
    ignore_path = args.path / IGNORE_FILENAME
    if not created:
        print(f"{ignore_path} already exists (use --force to overwrite)", file=sys.stderr)
        return 1
    print(f"Created {ignore_path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(log_level=args.log_level)

    # These two never consult the engine
    if args.command == 'validate':
        return _cmd_validate(args)
    if args.command == 'init':
        return _cmd_init(args)

    try:
        engine = _build_engine(args)
    except RuleFileParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    handlers = {
        'check': _cmd_check,
        'filter': _cmd_filter,
        'args': _cmd_args,
    }
    return handlers[args.command](engine, args)


if __name__ == '__main__':
    sys.exit(main())

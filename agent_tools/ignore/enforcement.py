"""
Helpers for tool adapters that touch the filesystem

Adapters validate every path before acting on it and hand the engine's
flags to any external scanner they delegate to (fd, rg, ...).
"""

from typing import Iterable, List, Sequence

from .engine import IgnoreEngine, PathLike, P
from agent_tools.utils import get_logger

logger = get_logger(__name__)


def apply_enforcement_args(engine: IgnoreEngine, argv: Sequence[str],
                           working_dir: PathLike) -> List[str]:
    """
    Insert the enforcement flags into a scanner command line

    The flags go right after the program name so they precede any ``--``
    separator or positional arguments.

    Args:
        engine: Ignore engine to consult
        argv: Scanner command, program name first
        working_dir: Directory the scan starts from

    Returns:
        New argument list; argv is left untouched
    """
    if not argv:
        raise ValueError("argv must contain at least the program name")

    enforcement = engine.get_enforcement_args(working_dir)
    cmd = [argv[0], *enforcement, *argv[1:]]
    logger.debug(f"Scanner command with ignore enforcement: {' '.join(cmd)}")
    return cmd


def guard_paths(engine: IgnoreEngine, paths: Iterable[P]) -> List[P]:
    """
    Validate every path an operation is about to touch

    Meant for operations with several operands (copy, move, link), which
    must not start when any of them is blocked.

    Returns:
        The paths, as a list, when all of them are allowed

    Raises:
        AccessDenied: for the first blocked path
    """
    checked = list(paths)
    for path in checked:
        engine.validate_path(path)
    return checked

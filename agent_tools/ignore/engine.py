"""
Ignore engine: the access-control boundary consulted by every tool

Rules come from two places:
1. the global rule file (<config dir>/agent/ignore), loaded once
2. .agentignore files found by walking up from the queried path

Matching is additive across files: a path is ignored as soon as any
applicable file matches it. Negation only works inside a single file.
Version-control ignore files are deliberately not consulted.
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional, TypeVar, Union

from .cache import DirectoryRuleCache
from .config import global_ignore_path
from .constants import NO_IGNORE_FLAG, IGNORE_FILE_FLAG
from .errors import AccessDenied, RuleFileParseError
from .pattern_set import PatternSet, RuleScope, MatchResult
from agent_tools.utils import get_logger

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]
P = TypeVar('P', str, os.PathLike)

# Sentinel so that an explicit None means "no global rule file"
_DEFAULT = object()


def canonicalize(path: PathLike) -> Path:
    """
    Resolve a path to its absolute, symlink-free form

    Paths that cannot be resolved (missing, unreadable, symlink loop) are
    kept as given, only anchored to the current directory when relative.
    """
    try:
        return Path(path).resolve(strict=True)
    except (OSError, RuntimeError):
        return Path(os.path.abspath(path))


class IgnoreEngine:
    """
    Answers "may a tool touch this path?" and tells delegated scanners how to
    enforce the same answer.

    One engine is meant to be shared by all tool invocations of a server;
    every method is safe to call from several threads at once.
    """

    def __init__(self,
                 global_ignore_file=_DEFAULT,
                 cache: Optional[DirectoryRuleCache] = None):
        """
        Initialize the engine, loading the global rule file

        Args:
            global_ignore_file: Path of the global rule file; defaults to the
                platform location, None disables global rules entirely
            cache: Directory rule cache to use (a fresh one by default)

        Raises:
            RuleFileParseError: the global rule file exists but does not parse
        """
        if global_ignore_file is _DEFAULT:
            global_ignore_file = global_ignore_path()
        self._global_file = Path(global_ignore_file) if global_ignore_file else None
        self._global = self._load_global(self._global_file)
        self._cache = cache if cache is not None else DirectoryRuleCache()

    @classmethod
    def lenient(cls,
                global_ignore_file=_DEFAULT,
                cache: Optional[DirectoryRuleCache] = None) -> "IgnoreEngine":
        """
        Build an engine that survives a broken global rule file

        A parse error in the global file is logged as a warning and the
        engine runs without global rules. Directory rule files still apply.
        """
        try:
            return cls(global_ignore_file, cache)
        except RuleFileParseError as e:
            logger.warning(f"Global ignore rules disabled: {e}")
            engine = cls(None, cache)
            engine._global_file = e.path
            return engine

    @staticmethod
    def _load_global(path: Optional[Path]) -> Optional[PatternSet]:
        if path is None or not path.exists():
            logger.debug(f"No global ignore file at {path}")
            return None
        patterns = PatternSet.compile(path, RuleScope.GLOBAL, root=path.parent.parent)
        logger.info(f"Loaded {len(patterns)} global ignore patterns from {path}")
        return patterns

    @property
    def global_rules(self) -> Optional[PatternSet]:
        return self._global

    @property
    def global_ignore_file(self) -> Optional[Path]:
        return self._global_file

    @property
    def cache(self) -> DirectoryRuleCache:
        return self._cache

    def clone(self) -> "IgnoreEngine":
        """
        Independent engine sharing the global rules but not the cache

        The clone starts cold and never sees entries cached by this engine.
        """
        other = object.__new__(type(self))
        other._global_file = self._global_file
        other._global = self._global
        other._cache = DirectoryRuleCache(self._cache.ignore_filename)
        return other

    __copy__ = clone

    def check(self, path: PathLike) -> MatchResult:
        """
        Decide whether a path is ignored and by which rule file

        Args:
            path: Path to check (relative paths are taken from the cwd)

        Returns:
            MatchResult naming the first rule file that matched, if any
        """
        path = canonicalize(path)
        is_dir = path.is_dir()

        if self._global is not None and self._global.matches(path, is_dir):
            logger.trace(f"{path} ignored by global rules")
            return MatchResult(True, self._global.source)

        # Only ancestors are consulted; a directory's own rule file never
        # applies to the directory itself
        for directory in path.parents:
            if not (directory / self._cache.ignore_filename).is_file():
                continue
            patterns = self._cache.get_or_compile(directory)
            if patterns is not None and patterns.matches(path, is_dir):
                logger.trace(f"{path} ignored by {patterns.source.origin_file}")
                return MatchResult(True, patterns.source)

        return MatchResult(False)

    def is_ignored(self, path: PathLike) -> bool:
        """
        Check if a path is excluded from tool access

        Args:
            path: Path to check

        Returns:
            True if the global rules or any ancestor's rule file match it
        """
        return self.check(path).should_ignore

    def validate_path(self, path: PathLike) -> None:
        """
        Raise if a tool may not touch the path

        Raises:
            AccessDenied: the path is ignored
        """
        result = self.check(path)
        if result.should_ignore:
            raise AccessDenied(Path(path), result.source)

    def filter_paths(self, paths: Iterable[P]) -> List[P]:
        """
        Drop ignored paths, keeping the order and objects of the rest
        """
        return [p for p in paths if not self.is_ignored(p)]

    def get_enforcement_args(self, working_dir: PathLike) -> List[str]:
        """
        Command-line tokens making fd/rg honour the same rules

        The list must be passed to the scanner verbatim and in full.

        Args:
            working_dir: Directory the scanner runs in / starts from

        Returns:
            ["--no-ignore", "--ignore-file=<global>", "--ignore-file=<nearest>", ...]
        """
        args = [NO_IGNORE_FLAG]
        seen = set()

        def add(rule_file: Path):
            if rule_file not in seen:
                seen.add(rule_file)
                args.append(f"{IGNORE_FILE_FLAG}={rule_file}")

        if self._global_file is not None and self._global_file.is_file():
            add(canonicalize(self._global_file))

        start = canonicalize(working_dir)
        for directory in (start, *start.parents):
            rule_file = directory / self._cache.ignore_filename
            if rule_file.is_file():
                add(rule_file)

        return args

    def clear_cache(self):
        """Forget compiled directory rules; global rules are kept"""
        self._cache.clear()

    def get_stats(self):
        return {
            'global_file': str(self._global_file) if self._global_file else None,
            'global_patterns': len(self._global) if self._global is not None else 0,
            'ignore_filename': self._cache.ignore_filename,
            'cache': self._cache.get_stats(),
        }


def default_engine() -> IgnoreEngine:
    """Engine with platform defaults and a tolerant global rule load"""
    return IgnoreEngine.lenient()

"""
Compiled, immutable matcher for the contents of one rule file
"""

import enum
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Iterable, Optional, Tuple

import pathspec

from .constants import PATTERN_STYLE
from .errors import RuleFileParseError
from .file_loader import load_rule_file, ValidationError
from agent_tools.utils import get_logger

logger = get_logger(__name__)


class RuleScope(enum.Enum):
    GLOBAL = "global"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class RuleSource:
    """Where a pattern set's text came from"""
    scope: RuleScope
    origin_file: Path
    # Directory that anchored patterns ("/build", "src/*.py") are relative to
    root: Path


@dataclass(frozen=True)
class MatchResult:
    """Outcome of an ignore query"""
    should_ignore: bool
    source: Optional[RuleSource] = None


class PatternSet:
    """
    Gitignore-style matcher built from one rule file.

    Within the file the last matching pattern wins, so ``!pattern`` re-includes
    a path matched by an earlier line. Patterns ending in ``/`` only match
    directories, and a matched directory takes its contents with it.

    Instances are never mutated after construction and may be shared freely
    between threads and engine clones.
    """

    __slots__ = ('_spec', '_source', '_patterns')

    def __init__(self, spec: pathspec.PathSpec, source: RuleSource,
                 patterns: Tuple[str, ...]):
        self._spec = spec
        self._source = source
        self._patterns = patterns

    @classmethod
    def compile(cls, rule_file: Path, scope: RuleScope = RuleScope.DIRECTORY,
                root: Optional[Path] = None) -> "PatternSet":
        """
        Read and compile a rule file

        Args:
            rule_file: Rule file to read; must exist
            scope: Whether this is the global file or a directory's own file
            root: Anchor directory (defaults to the rule file's directory)

        Returns:
            Compiled PatternSet

        Raises:
            FileNotFoundError: rule_file does not exist (callers check first)
            RuleFileParseError: the file is unreadable or has an invalid pattern
        """
        rule_file = Path(rule_file)
        if not rule_file.exists():
            raise FileNotFoundError(f"Rule file does not exist: {rule_file}")

        info = load_rule_file(rule_file)
        if not info.is_valid:
            raise RuleFileParseError(rule_file, info.errors)

        source = RuleSource(
            scope=scope,
            origin_file=rule_file,
            root=Path(root) if root is not None else rule_file.parent,
        )
        return cls.from_lines(info.patterns, source)

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: RuleSource) -> "PatternSet":
        """
        Compile already-read pattern lines

        Raises:
            RuleFileParseError: a line is not a valid pattern
        """
        patterns = tuple(lines)
        try:
            spec = pathspec.PathSpec.from_lines(PATTERN_STYLE, patterns)
        except ValueError as e:
            raise RuleFileParseError(
                source.origin_file,
                [ValidationError(line=0, pattern="", message=str(e))]
            ) from e
        logger.debug(f"Compiled {len(patterns)} patterns from {source.origin_file}")
        return cls(spec, source, patterns)

    @property
    def source(self) -> RuleSource:
        return self._source

    @property
    def patterns(self) -> Tuple[str, ...]:
        return self._patterns

    def __len__(self) -> int:
        return len(self._patterns)

    def __repr__(self) -> str:
        return (f"PatternSet({self._source.scope.value}, "
                f"{str(self._source.origin_file)!r}, {len(self._patterns)} patterns)")

    def matches(self, path: PurePath, is_directory: bool) -> bool:
        """
        Check whether the path is ignored by this rule file

        Args:
            path: Absolute path, or a path relative to the rule root
            is_directory: Whether the path names a directory; directory-only
                patterns are skipped otherwise

        Returns:
            True if an ancestor directory below the root is excluded, or the
            last pattern matching the path is not a negation
        """
        rel = self._relative(PurePath(path))
        if not rel:
            return False

        # A file inside an excluded directory cannot be re-included
        parts = rel.split('/')
        for depth in range(1, len(parts)):
            if self._spec.match_file('/'.join(parts[:depth]) + '/'):
                return True

        if is_directory:
            rel += '/'
        return self._spec.match_file(rel)

    def _relative(self, path: PurePath) -> str:
        if path.is_absolute():
            try:
                path = path.relative_to(self._source.root)
            except ValueError:
                # Outside the anchor (global rules): match on the anchor-less form
                path = PurePath(*path.parts[1:])
        rel = path.as_posix()
        return '' if rel == '.' else rel

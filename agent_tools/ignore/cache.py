"""
Per-directory cache of compiled rule files
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Optional, Union
import threading

from .constants import IGNORE_FILENAME
from .errors import RuleFileParseError
from .pattern_set import PatternSet, RuleScope
from agent_tools.utils import get_logger

logger = get_logger(__name__)


class ReadWriteLock:
    """
    Many concurrent readers or a single writer.

    Readers never wait for each other; a writer waits until the readers
    holding the lock have left.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self):
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class DirectoryRuleCache:
    """
    Lazily compiled pattern sets keyed by the directory holding the rule file.

    Only directories that actually contain a rule file get an entry; a
    missing file is cheap to re-detect, so absence is never cached. Entries
    are never refreshed automatically, callers clear the cache when they know
    a rule file changed on disk.
    """

    def __init__(self, ignore_filename: str = IGNORE_FILENAME):
        """
        Args:
            ignore_filename: Name of the per-directory rule file
        """
        self.ignore_filename = ignore_filename
        self._entries: Dict[Path, PatternSet] = {}
        self._lock = ReadWriteLock()
        self._stats_lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._compiles = 0
        self._parse_failures = 0

    def get_or_compile(self, directory: Union[str, Path]) -> Optional[PatternSet]:
        """
        Get the compiled rules of a directory, compiling them on first use

        Args:
            directory: Directory that may hold a rule file

        Returns:
            Shared PatternSet, or None when the directory has no rule file or
            its rule file does not parse
        """
        directory = Path(directory)

        with self._lock.read():
            patterns = self._entries.get(directory)
        if patterns is not None:
            self._count('_hits')
            return patterns
        self._count('_misses')

        rule_file = directory / self.ignore_filename
        if not rule_file.is_file():
            return None

        try:
            patterns = PatternSet.compile(rule_file, RuleScope.DIRECTORY, root=directory)
        except RuleFileParseError as e:
            # This directory contributes no rules; global and other ancestors still apply
            self._count('_parse_failures')
            logger.warning(f"Ignoring unparseable rule file: {e}")
            return None
        except FileNotFoundError:
            # Removed between the existence check and the read
            return None

        self._count('_compiles')
        # Concurrent misses may both compile; the later insert wins with an equal value
        with self._lock.write():
            self._entries[directory] = patterns
        logger.debug(f"Cached rules for {directory} ({len(patterns)} patterns)")
        return patterns

    def clear(self):
        """Drop every cached entry"""
        with self._lock.write():
            count = len(self._entries)
            self._entries.clear()
        logger.debug(f"Cleared {count} cached rule sets")

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)

    def __contains__(self, directory) -> bool:
        with self._lock.read():
            return Path(directory) in self._entries

    def _count(self, name: str):
        with self._stats_lock:
            setattr(self, name, getattr(self, name) + 1)

    def get_stats(self) -> Dict[str, int]:
        """
        Get cache statistics

        Returns:
            Dictionary with size, hits, misses, compiles and parse_failures
        """
        size = len(self)
        with self._stats_lock:
            return {
                'size': size,
                'hits': self._hits,
                'misses': self._misses,
                'compiles': self._compiles,
                'parse_failures': self._parse_failures,
            }

"""
Ignore boundary for agent tools

This module decides which paths agent tools may touch:
- a global rule file at <config dir>/agent/ignore
- .agentignore files in any ancestor directory of a queried path
- flags that make delegated scanners (fd, rg) enforce the same rules
"""

from .constants import IGNORE_FILENAME
from .errors import IgnoreError, AccessDenied, RuleFileParseError
from .pattern_set import PatternSet, RuleSource, RuleScope, MatchResult
from .cache import DirectoryRuleCache
from .engine import IgnoreEngine, default_engine
from .enforcement import apply_enforcement_args, guard_paths
from .init import init_ignore_file, generate_ignore_content

__all__ = [
    'IGNORE_FILENAME',
    'IgnoreError',
    'AccessDenied',
    'RuleFileParseError',
    'PatternSet',
    'RuleSource',
    'RuleScope',
    'MatchResult',
    'DirectoryRuleCache',
    'IgnoreEngine',
    'default_engine',
    'apply_enforcement_args',
    'guard_paths',
    'init_ignore_file',
    'generate_ignore_content',
]

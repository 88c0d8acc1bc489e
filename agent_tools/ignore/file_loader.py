"""
File loader for parsing and validating rule files
"""

from pathlib import Path
from typing import List, Optional, Dict, Tuple
from dataclasses import dataclass, field

import pathspec

from .constants import MAX_IGNORE_FILE_SIZE, MAX_PATTERNS_PER_FILE, PATTERN_STYLE
from agent_tools.utils import get_logger

logger = get_logger(__name__)


@dataclass
class ValidationError:
    """Represents a validation error in a rule file"""
    line: int
    pattern: str
    message: str


@dataclass
class ValidationWarning:
    """Represents a validation warning in a rule file"""
    line: int
    pattern: str
    message: str


@dataclass
class RuleFileInfo:
    """Information about a loaded rule file"""
    path: Path
    patterns: List[str]
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """A rule file with any error contributes no rules at all"""
        return len(self.errors) == 0

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


def validate_pattern(pattern: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a single pattern

    Args:
        pattern: Pattern to validate, negation prefix included

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        pathspec.PathSpec.from_lines(PATTERN_STYLE, [pattern])
        return True, None
    except ValueError as e:
        return False, str(e)


def check_pattern_warnings(pattern: str) -> List[str]:
    """
    Check pattern for potential issues that aren't errors

    Args:
        pattern: Pattern to check

    Returns:
        List of warning messages
    """
    warnings = []

    if '\\' in pattern and not pattern.startswith('\\'):
        warnings.append(
            "Pattern contains backslash. Use forward slashes for paths."
        )

    if pattern in ['*', '**', '**/*']:
        warnings.append(
            "Very broad pattern - blocks every path below this rule file"
        )

    if pattern.startswith('!') and len(pattern) > 1 and pattern[1:].endswith('/'):
        warnings.append(
            "Negated directory pattern only re-includes the directory itself, "
            "not files excluded inside it"
        )

    if pattern.startswith('*.') and '/' in pattern:
        warnings.append(
            "Extension pattern with path separator - this may not work as expected"
        )

    return warnings


def load_rule_file(file_path: Path) -> RuleFileInfo:
    """
    Load and validate a rule file

    Problems are recorded on the returned info rather than raised, so the
    caller decides whether a broken file is fatal.

    Args:
        file_path: Path to the rule file

    Returns:
        RuleFileInfo with patterns and validation results
    """
    info = RuleFileInfo(
        path=file_path,
        patterns=[],
        stats={
            'total_lines': 0,
            'empty_lines': 0,
            'comment_lines': 0,
            'pattern_lines': 0,
        }
    )

    if not file_path.is_file():
        info.errors.append(ValidationError(
            line=0,
            pattern="",
            message=f"File not found: {file_path}"
        ))
        return info

    try:
        file_size = file_path.stat().st_size
        if file_size > MAX_IGNORE_FILE_SIZE:
            info.warnings.append(ValidationWarning(
                line=0,
                pattern="",
                message=f"Large file: {file_size} bytes (recommended max: {MAX_IGNORE_FILE_SIZE})"
            ))
        # utf-8-sig so an editor BOM does not end up in the first pattern
        text = file_path.read_text(encoding='utf-8-sig')
    except (OSError, UnicodeDecodeError) as e:
        info.errors.append(ValidationError(
            line=0,
            pattern="",
            message=f"Error reading file: {e}"
        ))
        return info

    lines = text.splitlines()
    info.stats['total_lines'] = len(lines)

    for line_num, line in enumerate(lines, 1):
        # Leading and escaped trailing whitespace are significant; pathspec
        # drops unescaped trailing whitespace itself
        pattern = line.rstrip('\r\n')
        stripped = pattern.strip()

        if not stripped:
            info.stats['empty_lines'] += 1
            continue

        if pattern.startswith('#'):
            info.stats['comment_lines'] += 1
            continue

        info.stats['pattern_lines'] += 1
        info.patterns.append(pattern)

        is_valid, validation_msg = validate_pattern(pattern)
        if not is_valid:
            info.errors.append(ValidationError(
                line=line_num,
                pattern=pattern,
                message=validation_msg or "Invalid pattern"
            ))

        for warning_msg in check_pattern_warnings(stripped):
            info.warnings.append(ValidationWarning(
                line=line_num,
                pattern=pattern,
                message=warning_msg
            ))

    if len(info.patterns) > MAX_PATTERNS_PER_FILE:
        info.warnings.append(ValidationWarning(
            line=0,
            pattern="",
            message=f"Many patterns: {len(info.patterns)} (recommended max: {MAX_PATTERNS_PER_FILE})"
        ))

    logger.trace(
        f"Loaded {file_path}: {len(info.patterns)} patterns, "
        f"{len(info.errors)} errors, {len(info.warnings)} warnings"
    )

    return info

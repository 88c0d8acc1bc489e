"""
Exceptions raised by the ignore engine
"""

from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .file_loader import ValidationError
    from .pattern_set import RuleSource


class IgnoreError(Exception):
    """Base class for ignore engine errors"""


class AccessDenied(IgnoreError):
    """
    A tool tried to touch a path excluded by the user's rule files.

    Surfaced to the tool caller as a blocked-operation message and never
    retried.
    """

    def __init__(self, path: Path, source: Optional["RuleSource"] = None):
        self.path = Path(path)
        self.source = source
        message = f"Path is blocked by .agentignore: {self.path}"
        if source is not None:
            message += f" (rule file: {source.origin_file})"
        super().__init__(message)


class RuleFileParseError(IgnoreError):
    """A rule file could not be read or contains an invalid pattern"""

    def __init__(self, path: Path, errors: Optional[List["ValidationError"]] = None):
        self.path = Path(path)
        self.errors = list(errors or [])
        details = "; ".join(
            f"line {e.line}: {e.message}" if e.line else e.message
            for e in self.errors
        )
        message = f"Failed to parse ignore file {self.path}"
        if details:
            message += f": {details}"
        super().__init__(message)

"""
Initialize .agentignore files with a starter set of sensitive patterns
"""

from pathlib import Path
from typing import Optional, List
from datetime import datetime

from .constants import IGNORE_FILENAME, SENSITIVE_PATTERNS, MINIMAL_PATTERNS


def generate_ignore_content(custom_patterns: Optional[List[str]] = None,
                            minimal: bool = False) -> str:
    """
    Generate content for a .agentignore file

    Args:
        custom_patterns: Additional patterns to include
        minimal: Only the essential patterns, without categories

    Returns:
        Content for .agentignore file
    """
    lines = [
        f"# {IGNORE_FILENAME} - paths agent tools may not read, list or modify",
        f"# Generated on {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        "#",
        "# gitignore syntax, matched relative to the directory of this file.",
        "# Rules apply to this directory and everything below it.",
        "# Use ! to re-include a path excluded earlier in this same file.",
        "",
    ]

    if minimal:
        lines.extend([
            "# Essential exclusions",
            "# --------------------",
            *MINIMAL_PATTERNS,
            "",
        ])
    else:
        for category, patterns in SENSITIVE_PATTERNS.items():
            lines.extend([
                f"# {category}",
                f"# {'-' * len(category)}",
                *patterns,
                "",
            ])

    if custom_patterns:
        lines.extend([
            "# Custom patterns",
            "# ---------------",
            *custom_patterns,
            "",
        ])

    lines.extend([
        "# Project-specific patterns",
        "# -------------------------",
        "# data/private/**       # Datasets the agent must not see",
        "# !config/.env.sample   # Exception - allow this one file",
        "",
    ])

    return '\n'.join(lines)


def init_ignore_file(path: Path,
                     force: bool = False,
                     minimal: bool = False,
                     custom_patterns: Optional[List[str]] = None) -> bool:
    """
    Initialize a .agentignore file in a directory

    Args:
        path: Directory where to create .agentignore
        force: Overwrite existing file
        minimal: Create minimal file instead of the categorized one
        custom_patterns: Additional patterns to include

    Returns:
        True if file was created, False if already exists and not forced
    """
    ignore_path = Path(path) / IGNORE_FILENAME

    if ignore_path.exists() and not force:
        return False

    content = generate_ignore_content(
        custom_patterns=custom_patterns,
        minimal=minimal
    )
    ignore_path.write_text(content, encoding='utf-8')
    return True

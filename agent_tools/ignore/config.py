"""
Location of the global rule file
"""

import os
import sys
from pathlib import Path
from typing import Optional

from .constants import GLOBAL_IGNORE_DIR, GLOBAL_IGNORE_NAME, GLOBAL_IGNORE_ENV


def platform_config_dir() -> Optional[Path]:
    """
    Per-user configuration directory for the current platform.

    Returns:
        %APPDATA% on Windows, ~/Library/Application Support on macOS,
        $XDG_CONFIG_HOME or ~/.config elsewhere. None when no home
        directory can be determined.
    """
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else None

    try:
        home = Path.home()
    except (RuntimeError, KeyError):
        home = None

    if sys.platform == "darwin":
        return home / "Library" / "Application Support" if home else None

    xdg = os.environ.get("XDG_CONFIG_HOME")
    # XDG spec: relative values are invalid and must be ignored
    if xdg and os.path.isabs(xdg):
        return Path(xdg)
    return home / ".config" if home else None


def global_ignore_path() -> Optional[Path]:
    """
    Path of the global rule file, whether or not it exists.

    AGENT_IGNORE_GLOBAL_FILE overrides the platform default.
    """
    override = os.environ.get(GLOBAL_IGNORE_ENV)
    if override:
        return Path(override).expanduser()

    config_dir = platform_config_dir()
    if config_dir is None:
        return None
    return config_dir / GLOBAL_IGNORE_DIR / GLOBAL_IGNORE_NAME

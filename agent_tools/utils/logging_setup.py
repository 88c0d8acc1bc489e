"""
Logging configuration for the agent tool server.

Tool servers speak MCP over stdout, so nothing here ever writes to it:
- stderr only when running in a container or when LOG_TO_STDERR is set
- JSON records inside containers, plain text elsewhere
- rotating log file under ~/.agent-tools/logs for local runs
- a TRACE level below DEBUG for per-path ignore decisions
"""

import sys
import logging
import json
import os
from datetime import datetime, timezone
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional, Any

TRACE_LEVEL = 5
logging.addLevelName(TRACE_LEVEL, "TRACE")

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def trace(self, message, *args, **kwargs):
    if self.isEnabledFor(TRACE_LEVEL):
        self._log(TRACE_LEVEL, message, args, **kwargs)


def add_trace_to_logger():
    """Ensure trace method is available on all logger instances"""
    if not hasattr(logging.Logger, 'trace'):
        logging.Logger.trace = trace


class ContainerFormatter(logging.Formatter):
    """One JSON object per record, for log collectors"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'component': record.name,
            'message': record.getMessage(),
            'pid': os.getpid(),
        }

        context = getattr(record, 'context', None)
        if context:
            log_data.update(context)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def resolve_level(log_level: Optional[str] = None) -> int:
    """
    Turn a level name into a numeric level.

    AGENT_TOOLS_LOG_LEVEL takes precedence over LOG_LEVEL; unknown names
    fall back to INFO.
    """
    level_str = (
        log_level
        or os.environ.get('AGENT_TOOLS_LOG_LEVEL')
        or os.environ.get('LOG_LEVEL', 'INFO')
    )
    if level_str.upper() == 'TRACE':
        return TRACE_LEVEL
    level = logging.getLevelName(level_str.upper())
    return level if isinstance(level, int) else logging.INFO


def in_container() -> bool:
    return (
        os.path.exists('/.dockerenv')
        or os.environ.get('DOCKER_CONTAINER', '').lower() == 'true'
    )


def configure_logging(
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    enable_rotation: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Configure root logging for the current environment.

    Args:
        log_level: Override log level (defaults to AGENT_TOOLS_LOG_LEVEL, LOG_LEVEL, INFO)
        log_file: Path to log file (ignored when logging to stderr)
        enable_rotation: Rotate the log file
        max_bytes: Maximum size of log file before rotation
        backup_count: Number of rotated files to keep
    """
    add_trace_to_logger()
    level = resolve_level(log_level)

    root_logger = logging.getLogger()
    root_logger.handlers = []

    container = in_container()

    if container or os.environ.get('LOG_TO_STDERR', '').lower() == 'true':
        handler = logging.StreamHandler(sys.stderr)
        if container:
            handler.setFormatter(ContainerFormatter())
        else:
            handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
    else:
        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
        else:
            log_dir = Path.home() / '.agent-tools' / 'logs'
            log_dir.mkdir(parents=True, exist_ok=True)
            log_path = log_dir / 'server.log'

        if enable_rotation:
            handler = RotatingFileHandler(
                str(log_path),
                maxBytes=max_bytes,
                backupCount=backup_count
            )
        else:
            handler = logging.FileHandler(str(log_path))
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))

        # Warnings and above still reach the terminal
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        console_handler.setLevel(max(level, logging.WARNING))
        root_logger.addHandler(console_handler)

    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    logging.getLogger('agent-tools').debug(
        f"Logging configured - Level: {logging.getLevelName(level)}, Container: {container}"
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger with the trace method available
    """
    add_trace_to_logger()
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context: Any
) -> None:
    """
    Log a message with additional structured fields.

    The fields land in the JSON record under container logging and are
    dropped by the plain text formatters.
    """
    extra = {'context': context} if context else {}
    logger.log(level, message, extra=extra)

"""
Logging System for the cart automation
Format: YYYY-MM-DD HH:MM:SS - [Module] - [Source] - Description
Adds a SUCCESS level and a bounded activity log that mirrors what the
operator sees in the control surface.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, List, Optional

SUCCESS = 25
logging.addLevelName(SUCCESS, 'SUCCESS')

SEVERITIES = ('info', 'success', 'warning', 'error')

SEVERITY_LEVELS = {
    'info': logging.INFO,
    'success': SUCCESS,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}


def severity_for_level(levelno: int) -> str:
    if levelno >= logging.ERROR:
        return 'error'
    if levelno >= logging.WARNING:
        return 'warning'
    if levelno >= SUCCESS:
        return 'success'
    return 'info'


def level_for_severity(severity: str) -> int:
    return SEVERITY_LEVELS.get(severity, logging.INFO)


class AutoCartFormatter(logging.Formatter):
    """Custom formatter with module and source context"""

    colors = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[37m',     # White
        'SUCCESS': '\033[32m',  # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m'  # Magenta
    }
    reset = '\033[0m'

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record):
        module = getattr(record, 'module_name', record.name.split('.')[-1].upper())
        source = getattr(record, 'source', 'CORE')
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')

        formatted = f"{timestamp} - [{module}] - [{source}] - {record.getMessage()}"
        if record.exc_info:
            formatted = f"{formatted}\n{self.formatException(record.exc_info)}"

        if not self.use_color:
            return formatted
        color = self.colors.get(record.levelname, '')
        return f"{color}{formatted}{self.reset}"


@dataclass
class LogEntry:
    timestamp: datetime
    message: str
    severity: str

    @property
    def formatted_timestamp(self) -> str:
        return self.timestamp.strftime('%H:%M:%S')

    def to_dict(self) -> dict:
        return {
            'timestamp': self.timestamp.isoformat(),
            'time': self.formatted_timestamp,
            'message': self.message,
            'severity': self.severity,
        }


class ActivityLog(logging.Handler):
    """Keeps the most recent log entries in memory, oldest dropped first"""

    def __init__(self, max_entries: int = 200, level: int = logging.INFO):
        super().__init__(level)
        self.max_entries = max_entries
        self._entries: Deque[LogEntry] = deque(maxlen=max_entries)

    def emit(self, record):
        # Records the coordinator already stored directly
        if getattr(record, 'activity_logged', False):
            return
        self.add(record.getMessage(), severity_for_level(record.levelno),
                 datetime.fromtimestamp(record.created))

    def add(self, message: str, severity: str = 'info', timestamp: Optional[datetime] = None) -> LogEntry:
        if severity not in SEVERITIES:
            severity = 'info'
        entry = LogEntry(timestamp=timestamp or datetime.now(), message=message, severity=severity)
        self._entries.append(entry)
        return entry

    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def clear(self):
        self._entries.clear()

    def export_text(self) -> str:
        lines = [f"[{e.formatted_timestamp}] [{e.severity.upper()}] {e.message}" for e in self._entries]
        return '\n'.join(lines)

    def __len__(self):
        return len(self._entries)


def setup_logger(name: str = 'autocart', level: str = 'INFO', activity_log: Optional[ActivityLog] = None,
                 use_color: bool = True) -> logging.Logger:
    """Setup logger with custom formatting"""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid duplicate handlers
    if not any(isinstance(h, logging.StreamHandler) and isinstance(h.formatter, AutoCartFormatter)
               for h in logger.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(AutoCartFormatter(use_color=use_color))
        logger.addHandler(console_handler)

    if activity_log is not None and activity_log not in logger.handlers:
        logger.addHandler(activity_log)

    logger.propagate = False
    return logger

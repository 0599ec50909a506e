from collections import deque
from typing import Callable, List, Optional

INFO = 'info'
SUCCESS = 'success'
WARNING = 'warning'
ERROR = 'error'
LEVELS = (INFO, SUCCESS, WARNING, ERROR)

LOG_CAPACITY = 100
DEFAULT_TAIL = 20


class Statistics:
    def __init__(self):
        self.page_faults = 0
        self.processes_created = 0
        self.processes_finished = 0

    def record_page_fault(self):
        self.page_faults += 1

    def record_created(self):
        self.processes_created += 1

    def record_finished(self):
        self.processes_finished += 1

    def as_dict(self) -> dict:
        return {
            "page_faults": self.page_faults,
            "processes_created": self.processes_created,
            "processes_finished": self.processes_finished,
        }


class LogEntry:
    def __init__(self, timestamp, message, level=INFO):
        self.timestamp = timestamp
        self.message = message
        self.level = level

    def format(self) -> str:
        return f"[{self.timestamp:>4}s] {self.level.upper()}: {self.message}"

    def as_dict(self) -> dict:
        return {"time": self.timestamp, "message": self.message, "type": self.level}

    def __repr__(self):
        return f"LogEntry({self.timestamp}, {self.message!r}, {self.level!r})"


class EventLog:
    """Bounded, time-ordered event feed; only the newest LOG_CAPACITY entries are kept."""

    def __init__(self, logger: Optional[Callable[[str], None]] = None, capacity: int = LOG_CAPACITY):
        self.entries = deque(maxlen=capacity)
        self.logger = logger if logger else print

    def add(self, timestamp: int, message: str, level: str = INFO) -> LogEntry:
        if level not in LEVELS:
            raise ValueError(f"Unknown log level {level!r}")
        entry = LogEntry(timestamp, message, level)
        self.entries.append(entry)
        self.logger(entry.format())
        return entry

    def tail(self, n: int = DEFAULT_TAIL) -> List[LogEntry]:
        """Most recent n entries, newest first."""
        if n <= 0:
            return []
        return list(reversed(self.entries))[:n]

    def clear(self):
        self.entries.clear()

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

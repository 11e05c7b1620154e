# event_log.py

import collections
import threading
import time
from dataclasses import dataclass
from enum import Enum

import constants


class Severity(str, Enum):
    INFO = 'info'
    SUCCESS = 'success'
    WARNING = 'warning'
    ERROR = 'error'


@dataclass(frozen=True)
class LogEntry:
    seq: int
    timestamp: str
    message: str
    severity: Severity

    def to_dict(self):
        return {
            'id': self.seq,
            'timestamp': self.timestamp,
            'message': self.message,
            'type': self.severity.value,
        }


class EventLog:
    """
    Ordered stream of human-readable controller events.

    Only the most recent `maxlen` entries are kept. Every entry gets an
    increasing sequence number so streaming consumers can ask for what
    they have not seen yet.
    """
    def __init__(self, maxlen=constants.EVENT_LOG_SIZE, echo=True):
        self._entries = collections.deque(maxlen=maxlen)
        self._lock = threading.Lock()
        self._next_seq = 1
        self.echo = echo

    def add(self, message, severity=Severity.INFO):
        """Appends an entry and returns it."""
        severity = Severity(severity)
        with self._lock:
            entry = LogEntry(
                seq=self._next_seq,
                timestamp=time.strftime("%H:%M:%S"),
                message=message,
                severity=severity,
            )
            self._next_seq += 1
            self._entries.append(entry)
        if self.echo:
            print(f"[{entry.timestamp}] {severity.value.upper():7} {message}")
        return entry

    def info(self, message):
        return self.add(message, Severity.INFO)

    def success(self, message):
        return self.add(message, Severity.SUCCESS)

    def warning(self, message):
        return self.add(message, Severity.WARNING)

    def error(self, message):
        return self.add(message, Severity.ERROR)

    def recent(self, limit=None):
        """Returns the retained entries, newest first."""
        with self._lock:
            entries = list(reversed(self._entries))
        return entries[:limit] if limit is not None else entries

    def since(self, seq):
        """Returns retained entries with a sequence number above `seq`, oldest first."""
        with self._lock:
            return [entry for entry in self._entries if entry.seq > seq]

    @property
    def last_seq(self):
        with self._lock:
            return self._next_seq - 1

    def __len__(self):
        with self._lock:
            return len(self._entries)

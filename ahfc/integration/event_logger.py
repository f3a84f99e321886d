"""
Event Logger Module

Audit trail of container operations.

Features:
- File encryption / decryption events
- Integrity and format failures
- File ids are SHA-256 prefixes of the container, never file names
- Callbacks for live observers, JSON export

Events are also forwarded to the standard logging module.
"""

import hashlib
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

EVENT_VERSION = "1.0"


def get_file_id(data: bytes) -> str:
    """Short SHA-256 identifier of a container."""
    return hashlib.sha256(data).hexdigest()[:16]


# ============================================================================
# Event Types
# ============================================================================

class EventType(Enum):
    """Types of container events that can be logged."""

    FILE_ENCRYPT = "file_encrypt"
    FILE_DECRYPT = "file_decrypt"
    FILE_INTEGRITY_FAILED = "file_integrity_failed"
    FILE_DECRYPT_FAILED = "file_decrypt_failed"
    FILE_FORMAT_REJECTED = "file_format_rejected"


_LEVELS = {
    EventType.FILE_ENCRYPT: logging.INFO,
    EventType.FILE_DECRYPT: logging.INFO,
    EventType.FILE_INTEGRITY_FAILED: logging.WARNING,
    EventType.FILE_DECRYPT_FAILED: logging.WARNING,
    EventType.FILE_FORMAT_REJECTED: logging.WARNING,
}


# ============================================================================
# Event Structure
# ============================================================================

@dataclass
class SecurityEvent:
    """A single audit record."""
    event_type: EventType
    timestamp: int  # Unix timestamp
    details: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize event to a compact JSON string."""
        return json.dumps({
            'version': EVENT_VERSION,
            'type': self.event_type.value,
            'time': self.timestamp,
            'iso_time': datetime.fromtimestamp(self.timestamp).isoformat(),
            'details': self.details,
        }, separators=(',', ':'))

    @classmethod
    def from_json(cls, text: str) -> 'SecurityEvent':
        """Parse event from its JSON form."""
        data = json.loads(text)
        return cls(
            event_type=EventType(data['type']),
            timestamp=data['time'],
            details=data.get('details', {}),
        )

    def __str__(self) -> str:
        dt = datetime.fromtimestamp(self.timestamp)
        return f"[{dt.strftime('%Y-%m-%d %H:%M:%S')}] {self.event_type.value}"


# ============================================================================
# Event Logger
# ============================================================================

class EventLogger:
    """
    In-memory audit log for encrypt/decrypt operations.

    Example:
        >>> events = EventLogger()
        >>> encryptor = FileEncryptor("password", event_logger=events)
    """

    def __init__(self):
        self._events: List[SecurityEvent] = []
        self._callbacks: List[Callable[[SecurityEvent], None]] = []

    def _add_event(self, event_type: EventType, **details) -> SecurityEvent:
        event = SecurityEvent(
            event_type=event_type,
            timestamp=int(time.time()),
            details=details,
        )
        self._events.append(event)
        logger.log(_LEVELS[event_type], "%s %s", event_type.value, details)

        # Callbacks must not change the outcome of the operation being logged
        for callback in self._callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("Event callback failed for %s", event_type.value)
        return event

    def add_callback(self, callback: Callable[[SecurityEvent], None]) -> None:
        """Add a callback to be notified of new events."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[SecurityEvent], None]) -> None:
        """Remove a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    # ========================================================================
    # File Events
    # ========================================================================

    def log_file_encrypt(self, file_id: str, mode: str,
                         input_size: int, output_size: int) -> SecurityEvent:
        """Log a successful encryption."""
        return self._add_event(
            EventType.FILE_ENCRYPT,
            file_id=file_id, mode=mode,
            input_size=input_size, output_size=output_size,
        )

    def log_file_decrypt(self, file_id: str, mode: str,
                         output_size: int) -> SecurityEvent:
        """Log a successful decryption."""
        return self._add_event(
            EventType.FILE_DECRYPT,
            file_id=file_id, mode=mode, output_size=output_size,
        )

    def log_failure(self, event_type: EventType, file_id: str,
                    mode: Optional[str] = None) -> SecurityEvent:
        """Log a rejected container. No reason beyond the event type is kept."""
        return self._add_event(event_type, file_id=file_id, mode=mode)

    # ========================================================================
    # Retrieval
    # ========================================================================

    def get_all_events(self) -> List[SecurityEvent]:
        """Return all events in logging order."""
        return list(self._events)

    def get_events_by_type(self, event_type: EventType) -> List[SecurityEvent]:
        """Get all events of a specific type."""
        return [e for e in self._events if e.event_type == event_type]

    def get_recent_events(self, count: int = 10) -> List[SecurityEvent]:
        """Get the most recent events."""
        return self._events[-count:] if count > 0 else []

    def export_log(self) -> str:
        """Export the audit log as a JSON array."""
        return "[" + ",".join(e.to_json() for e in self._events) + "]"

    @classmethod
    def import_log(cls, json_str: str) -> 'EventLogger':
        """Rebuild an audit log from export_log() output."""
        events = cls()
        for item in json.loads(json_str):
            events._events.append(SecurityEvent.from_json(json.dumps(item)))
        return events

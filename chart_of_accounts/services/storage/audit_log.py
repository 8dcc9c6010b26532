"""
JSON Lines Audit Storage

Each audit event is appended as one JSON object per line. The file is only
ever appended to, matching the append-only contract of the audit trail.
"""

from pathlib import Path

from pydantic import ValidationError

from chart_of_accounts.models.audit import AuditEvent
from chart_of_accounts.services.storage.interface import (
    AuditStorageInterface,
    CorruptPersistedStateError,
    StorageIOError,
)


class JsonLinesAuditStorage(AuditStorageInterface):
    """Append-only audit trail in a JSON lines file."""
    
    def __init__(self, path: str, encoding: str = "utf-8"):
        self._path = Path(path)
        self._encoding = encoding
    
    @property
    def path(self) -> str:
        return str(self._path)
    
    def append_event(self, event: AuditEvent) -> bool:
        try:
            with self._path.open("a", encoding=self._encoding) as handle:
                handle.write(event.model_dump_json())
                handle.write("\n")
        except OSError as e:
            raise StorageIOError(self.path, e.strerror or str(e))
        return True
    
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        
        try:
            lines = self._path.read_text(encoding=self._encoding).splitlines()
        except OSError as e:
            raise StorageIOError(self.path, e.strerror or str(e))
        
        events = []
        for number, raw in enumerate(lines, start=1):
            if not raw.strip():
                continue
            try:
                events.append(AuditEvent.model_validate_json(raw))
            except ValidationError as e:
                raise CorruptPersistedStateError(str(e), self.path, number)
        
        events.reverse()
        return events[:limit]

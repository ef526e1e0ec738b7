"""
Audit and Metric Contracts

Immutable records emitted by every layer and collected by the
observability layer. Layers never read these back to make decisions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple
import hashlib

from .base import Timestamp


class AuditEventType(Enum):
    """Explicit audit event types."""
    INGESTION = "ingestion"
    BUILD = "build"
    FILTER = "filter"
    STATE_CHANGE = "state_change"
    ERROR = "error"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    layer: str  # Which layer generated this
    action: str
    entity_id: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(
        event_type: AuditEventType,
        layer: str,
        action: str,
        entity_id: Optional[str] = None,
        metadata: Tuple[Tuple[str, str], ...] = ()
    ) -> AuditLogEntry:
        timestamp = Timestamp.now()
        seed = f"{layer}_{action}|{entity_id or ''}|{timestamp.value.timestamp()}"
        entry_hash = hashlib.sha256(seed.encode('utf-8')).hexdigest()[:16]
        return AuditLogEntry(
            entry_id=f"audit_{entry_hash}",
            event_type=event_type,
            timestamp=timestamp,
            layer=layer,
            action=action,
            entity_id=entity_id,
            metadata=tuple((k, str(v)) for k, v in metadata)
        )

    def to_dict(self) -> dict:
        return {
            'entry_id': self.entry_id,
            'event_type': self.event_type.value,
            'timestamp': self.timestamp.to_iso(),
            'layer': self.layer,
            'action': self.action,
            'entity_id': self.entity_id,
            'metadata': dict(self.metadata),
        }


@dataclass(frozen=True)
class MetricPoint:
    """Immutable metric data point."""
    metric_name: str
    value: float
    timestamp: Timestamp
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

"""Base models shared across the package."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Event:
    """Standard event envelope for transaction lifecycle changes."""

    event_id: str
    event_type: str  # entity.action (e.g., transaction.status_changed)
    event_time: datetime
    source: str  # Service/system that generated
    subject: str  # Transaction ID affected
    data: dict
    metadata: dict = field(default_factory=dict)

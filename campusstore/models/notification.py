from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Notification:
    notification_id: int
    recipient_id: int
    message: str
    priority: int
    timestamp: datetime
    is_read: bool = False


@dataclass
class DeliveryResult:
    """Outcome of one recipient in a notification fan-out."""
    recipient_id: int
    delivered: bool
    notification_id: Optional[int] = None
    reason: str = ''

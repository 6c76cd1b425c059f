from dataclasses import dataclass
from datetime import datetime


class TicketStatus:
    PENDING = 'Pending'
    OPEN = 'Open'
    IN_PROGRESS = 'In Progress'
    COMPLETED = 'Completed'
    CLOSED = 'Closed'
    REJECTED = 'Rejected'  # legacy, still readable

    ALL = (PENDING, OPEN, IN_PROGRESS, COMPLETED, CLOSED, REJECTED)
    SETTABLE = (OPEN, IN_PROGRESS, COMPLETED, CLOSED)

    @staticmethod
    def normalize(raw):
        """Map free-form input ("in_progress", " OPEN ") to a settable status, or None."""
        key = ' '.join((raw or '').replace('_', ' ').split()).lower()
        for status in TicketStatus.SETTABLE:
            if status.lower() == key:
                return status
        return None


@dataclass
class MaintenanceTicket:
    ticket_id: int
    requester_id: int
    description: str
    created_at: datetime
    status: str = TicketStatus.PENDING
    comment: str = ''

from datetime import datetime
from unittest.mock import patch

from campusstore.models import TicketStatus
from campusstore.services.maintenance_service import MaintenanceService
from campusstore.services.notification_service import NotificationService


@patch('campusstore.services.maintenance_service.local_now')
def test_create_ticket(mock_now, store):
    mock_now.return_value = datetime(2099, 3, 1, 8, 30)
    ticket = MaintenanceService.create_ticket(7, 'Projector flickers in 1204')
    assert ticket.ticket_id == 1
    assert ticket.status == TicketStatus.PENDING
    assert MaintenanceService.get_ticket(1).created_at == datetime(2099, 3, 1, 8, 30)


def test_update_status_accepts_loose_spelling(store):
    ticket = MaintenanceService.create_ticket(7, 'Leaking tap')
    success, message = MaintenanceService.update_status(ticket, 'in_progress', comment='Plumber booked')
    assert success
    assert message == "Status updated."

    stored = MaintenanceService.get_ticket(ticket.ticket_id)
    assert stored.status == TicketStatus.IN_PROGRESS
    assert stored.comment == 'Plumber booked'

    unread = NotificationService.load_unread(7)
    assert unread[-1].message == ("Your maintenance request 1 is now In Progress. "
                                  "Comment: Plumber booked")


def test_update_status_rejects_unknown_status(store):
    ticket = MaintenanceService.create_ticket(7, 'Broken chair')
    success, message = MaintenanceService.update_status(ticket, 'Rejected')
    assert not success
    assert message.startswith("status must be one of")
    assert MaintenanceService.get_ticket(ticket.ticket_id).status == TicketStatus.PENDING
    assert NotificationService.load_unread(7) == []


def test_list_tickets_by_requester(store):
    MaintenanceService.create_ticket(7, 'A')
    MaintenanceService.create_ticket(8, 'B')
    MaintenanceService.create_ticket(7, 'C')
    assert [t.description for t in MaintenanceService.list_tickets(requester_id=7)] == ['A', 'C']
    assert len(MaintenanceService.list_tickets()) == 3


def test_set_comment(store):
    ticket = MaintenanceService.create_ticket(7, 'A')
    MaintenanceService.set_comment(ticket, 'Parts ordered')
    assert MaintenanceService.get_ticket(ticket.ticket_id).comment == 'Parts ordered'


def test_normalize():
    assert TicketStatus.normalize(' OPEN ') == TicketStatus.OPEN
    assert TicketStatus.normalize('in progress') == TicketStatus.IN_PROGRESS
    assert TicketStatus.normalize('Pending') is None
    assert TicketStatus.normalize(None) is None

import logging

from campusstore.errors import NotFound
from campusstore.extensions import store
from campusstore.models import MaintenanceTicket, TicketStatus
from campusstore.services.notification_service import NotificationService
from campusstore.utils.timeutils import local_now

logger = logging.getLogger(__name__)


class MaintenanceService:

    @staticmethod
    def create_ticket(requester_id, description):
        ticket = store.tickets.create(lambda new_id: MaintenanceTicket(
            ticket_id=new_id,
            requester_id=requester_id,
            description=description,
            created_at=local_now(store.config.TIMEZONE),
        ))
        logger.info("Maintenance ticket %d opened by user %s", ticket.ticket_id, requester_id)
        return ticket

    @staticmethod
    def get_ticket(ticket_id):
        return store.tickets.load(ticket_id)

    @staticmethod
    def list_tickets(requester_id=None):
        tickets = store.tickets.load_all()
        if requester_id is not None:
            tickets = [t for t in tickets if t.requester_id == requester_id]
        return tickets

    @staticmethod
    def update_status(ticket, status, comment=None):
        """
        Move a ticket to Open, In Progress, Completed or Closed (any spelling
        TicketStatus.normalize accepts) and tell the requester.
        """
        normalized = TicketStatus.normalize(status)
        if normalized is None:
            return False, "status must be one of: " + ", ".join(TicketStatus.SETTABLE) + "."

        with store.locks.lock_for(('ticket', ticket.ticket_id)):
            try:
                current = MaintenanceService.get_ticket(ticket.ticket_id)
            except NotFound:
                return False, "Maintenance request not found."
            current.status = normalized
            if comment:
                current.comment = comment
            store.tickets.save(current)

        ticket.status = current.status
        ticket.comment = current.comment
        logger.info("Maintenance ticket %d is now %s", ticket.ticket_id, normalized)

        message = f"Your maintenance request {ticket.ticket_id} is now {normalized}."
        if comment:
            message += f" Comment: {comment}"
        NotificationService.append(ticket.requester_id, message, store.config.DECISION_PRIORITY)
        return True, "Status updated."

    @staticmethod
    def set_comment(ticket, comment):
        with store.locks.lock_for(('ticket', ticket.ticket_id)):
            current = MaintenanceService.get_ticket(ticket.ticket_id)
            current.comment = comment
            store.tickets.save(current)
        ticket.comment = comment

from campusstore.models.room import Room
from campusstore.models.booking import Booking, BookingStatus, intervals_overlap
from campusstore.models.event import Event
from campusstore.models.feedback import Feedback
from campusstore.models.ticket import MaintenanceTicket, TicketStatus
from campusstore.models.user import User, AccountType
from campusstore.models.notification import Notification, DeliveryResult

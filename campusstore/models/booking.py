from dataclasses import dataclass
from datetime import date, time


class BookingStatus:
    PENDING = 'Pending'
    APPROVED = 'Approved'
    REJECTED = 'Rejected'
    CANCELLED = 'Cancelled'

    ALL = (PENDING, APPROVED, REJECTED, CANCELLED)
    CANCELLABLE = (PENDING, APPROVED)


def intervals_overlap(start_a, end_a, start_b, end_b):
    """Half-open intervals: [09:00,10:00) and [10:00,11:00) do not overlap."""
    return not (end_a <= start_b or start_a >= end_b)


@dataclass
class Booking:
    booking_id: int
    room_id: int
    building_id: int
    user_id: int
    date: date
    start_time: time
    end_time: time
    status: str = BookingStatus.PENDING

    @property
    def is_pending(self):
        return self.status == BookingStatus.PENDING

    @property
    def is_approved(self):
        return self.status == BookingStatus.APPROVED

    def clashes_with(self, other_date, start_time, end_time):
        if self.date != other_date:
            return False
        return intervals_overlap(self.start_time, self.end_time, start_time, end_time)

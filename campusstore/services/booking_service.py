import logging
from datetime import datetime, time, timedelta

from campusstore.errors import BookingConflict, NotFound
from campusstore.extensions import store
from campusstore.models import Booking, BookingStatus, Room
from campusstore.services.notification_service import NotificationService
from campusstore.utils.timeutils import local_now

logger = logging.getLogger(__name__)


class BookingService:

    # ---- rooms ----

    @staticmethod
    def _record_building(building_id):
        index = store.building_index
        with store.locks.lock_for(index):
            if not store.sequencer.contains(index, building_id):
                store.sequencer.record_id(index, building_id)

    @staticmethod
    def create_room(building_id, capacity, equipment=None, room_id=None):
        """
        Add a room to a building. Without ``room_id`` the next free number in the
        building is used; an explicit number that already exists raises Conflict.
        """
        if capacity < 0:
            raise ValueError("Room capacity cannot be negative.")
        BookingService._record_building(building_id)
        repo = store.rooms(building_id)
        equipment = list(equipment or [])

        if room_id is None:
            return repo.create(lambda new_id: Room(
                room_id=new_id, building_id=building_id, capacity=capacity, equipment=equipment))
        return repo.insert(Room(room_id=room_id, building_id=building_id, capacity=capacity, equipment=equipment))

    @staticmethod
    def get_room(building_id, room_id):
        return store.rooms(building_id).load(room_id)

    @staticmethod
    def list_rooms(building_id=None, level=None):
        """Rooms of one building (or all buildings), optionally only those on one floor."""
        if building_id is not None:
            rooms = store.rooms(building_id).load_all()
        else:
            rooms = []
            for b_id in store.sequencer.list_ids(store.building_index):
                rooms.extend(store.rooms(b_id).load_all())
        if level is not None:
            rooms = [r for r in rooms if r.level == level]
        return rooms

    @staticmethod
    def _room_lock(building_id, room_id):
        return store.locks.lock_for(("room", building_id, room_id))

    @staticmethod
    def _update_room(room, mutate):
        """Apply ``mutate`` to the on-disk room under its lock and persist the whole record."""
        with BookingService._room_lock(room.building_id, room.room_id):
            current = BookingService.get_room(room.building_id, room.room_id)
            result = mutate(current)
            store.rooms(room.building_id).save(current)
        room.capacity = current.capacity
        room.equipment = list(current.equipment)
        room.booking_ids = list(current.booking_ids)
        return result

    @staticmethod
    def set_capacity(room, capacity):
        if capacity < 0:
            raise ValueError("Room capacity cannot be negative.")

        def apply(current):
            current.capacity = capacity
        BookingService._update_room(room, apply)

    @staticmethod
    def add_equipment(room, name):
        BookingService._update_room(room, lambda current: current.equipment.append(name))

    @staticmethod
    def remove_equipment(room, name):
        """Returns False (and writes nothing) if the room does not have that item."""
        if name not in room.equipment:
            return False

        def apply(current):
            if name in current.equipment:
                current.equipment.remove(name)
                return True
            return False
        return BookingService._update_room(room, apply)

    # ---- availability ----

    @staticmethod
    def _load_bookings(room):
        return store.bookings(room.building_id, room.room_id).load_many(room.booking_ids)

    @staticmethod
    def _approved_clash(room, date, start_time, end_time, exclude_id=None):
        """First approved booking of the room overlapping the slot, or None."""
        for booking in BookingService._load_bookings(room):
            if booking.booking_id == exclude_id or not booking.is_approved:
                continue
            if booking.clashes_with(date, start_time, end_time):
                return booking
        return None

    @staticmethod
    def is_available(room, date, start_time, end_time):
        """Only approved bookings block a slot; touching endpoints do not clash."""
        try:
            current = BookingService.get_room(room.building_id, room.room_id)
        except NotFound:
            current = room
        return BookingService._approved_clash(current, date, start_time, end_time) is None

    @staticmethod
    def find_available_rooms(date, start_time, end_time, attendees=1, required_equipment=None):
        """Rooms that fit the attendees, carry the equipment and are free, smallest first."""
        capable_rooms = [r for r in BookingService.list_rooms() if r.capacity >= attendees]

        if required_equipment:
            capable_rooms = [r for r in capable_rooms if r.has_equipment(required_equipment)]

        available_rooms = [
            r for r in capable_rooms
            if BookingService._approved_clash(r, date, start_time, end_time) is None
        ]

        # Sort by capacity ascending (Best fit first)
        available_rooms.sort(key=lambda r: r.capacity)
        return available_rooms

    @staticmethod
    def free_slots(room, date):
        """Gaps between approved bookings within working hours on ``date``."""
        config = store.config
        start_of_day = datetime.combine(date, time(hour=config.WORKING_HOURS_START))
        end_of_day = datetime.combine(date, time(hour=config.WORKING_HOURS_END))

        current = BookingService.get_room(room.building_id, room.room_id)
        bookings = sorted(
            (b for b in BookingService._load_bookings(current) if b.is_approved and b.date == date),
            key=lambda b: b.start_time,
        )

        now = local_now(config.TIMEZONE)
        if now.date() > date:
            return []

        current_cursor = start_of_day
        # If now is later than start_of_day (and same day), move cursor to now (can't book in past)
        if now.date() == date and now > current_cursor:
            current_cursor = now.replace(second=0, microsecond=0)
            # Round up to next 15 min for cleanliness
            minute = current_cursor.minute
            if minute % 15 != 0:
                current_cursor += timedelta(minutes=15 - (minute % 15))

        free = []
        for b in bookings:
            b_start = datetime.combine(date, b.start_time)
            b_end = datetime.combine(date, b.end_time)
            if b_start > current_cursor:
                free.append({
                    "start": current_cursor.strftime("%H:%M"),
                    "end": min(b_start, end_of_day).strftime("%H:%M"),
                })
            current_cursor = max(current_cursor, b_end)
            if current_cursor >= end_of_day:
                break

        if current_cursor < end_of_day:
            free.append({
                "start": current_cursor.strftime("%H:%M"),
                "end": end_of_day.strftime("%H:%M"),
            })
        return free

    # ---- bookings ----

    @staticmethod
    def make_booking(room, date, start_time, end_time, requester_id):
        """
        Create a Pending booking if the slot is still free.

        The availability check and the write happen under the room's lock, so two
        requests for the same slot cannot both succeed. Raises BookingConflict when
        an approved booking overlaps.
        """
        if end_time <= start_time:
            raise ValueError("end_time must be after start_time")

        with BookingService._room_lock(room.building_id, room.room_id):
            current = BookingService.get_room(room.building_id, room.room_id)
            if BookingService._approved_clash(current, date, start_time, end_time) is not None:
                logger.info("Booking refused: room %d/%d on %s %s-%s is taken",
                            room.building_id, room.room_id, date, start_time, end_time)
                raise BookingConflict(current, date, start_time, end_time)

            booking = store.bookings(room.building_id, room.room_id).create(lambda new_id: Booking(
                booking_id=new_id,
                room_id=current.room_id,
                building_id=current.building_id,
                user_id=requester_id,
                date=date,
                start_time=start_time,
                end_time=end_time,
            ))
            current.booking_ids.append(booking.booking_id)
            store.rooms(room.building_id).save(current)

        room.booking_ids = list(current.booking_ids)
        logger.info("Booking %d created for user %s in room %d/%d",
                    booking.booking_id, requester_id, room.building_id, room.room_id)
        return booking

    @staticmethod
    def get_booking(building_id, room_id, booking_id):
        return store.bookings(building_id, room_id).load(booking_id)

    @staticmethod
    def get_room_bookings(room, include_past=False):
        bookings = BookingService._load_bookings(room)
        if include_past:
            return bookings
        today = local_now(store.config.TIMEZONE).date()
        return [b for b in bookings if b.date >= today]

    @staticmethod
    def get_pending_bookings():
        """Upcoming bookings awaiting a decision, across every building (admin queue)."""
        pending = []
        for room in BookingService.list_rooms():
            pending.extend(b for b in BookingService.get_room_bookings(room) if b.is_pending)
        return pending

    @staticmethod
    def get_user_bookings(user_id, include_past=False):
        """All bookings a user requested, in any room."""
        result = []
        for room in BookingService.list_rooms():
            result.extend(
                b for b in BookingService.get_room_bookings(room, include_past=include_past)
                if b.user_id == user_id
            )
        result.sort(key=lambda b: (b.date, b.start_time))
        return result

    # ---- status transitions ----

    @staticmethod
    def _transition(booking, allowed_from, new_status, check_clash=False):
        with BookingService._room_lock(booking.building_id, booking.room_id):
            try:
                current = BookingService.get_booking(booking.building_id, booking.room_id, booking.booking_id)
            except NotFound:
                return False, "Booking not found."

            if current.status not in allowed_from:
                return False, f"Invalid transition: booking is {current.status}, cannot become {new_status}."

            if check_clash:
                try:
                    room = BookingService.get_room(booking.building_id, booking.room_id)
                except NotFound:
                    return False, "Room not found."
                clash = BookingService._approved_clash(
                    room, current.date, current.start_time, current.end_time, exclude_id=current.booking_id)
                if clash is not None:
                    return False, f"Booking conflicts with approved booking {clash.booking_id}."

            old_status = current.status
            current.status = new_status
            store.bookings(booking.building_id, booking.room_id).save(current)

        booking.status = new_status
        logger.info("Booking %d in room %d/%d: %s -> %s",
                    booking.booking_id, booking.building_id, booking.room_id, old_status, new_status)
        return True, None

    @staticmethod
    def _notify_requester(booking, verb, note=None):
        message = (f"Your booking {booking.booking_id} for room {booking.room_id} on "
                   f"{booking.date.isoformat()} {booking.start_time:%H:%M}-{booking.end_time:%H:%M} was {verb}.")
        if note:
            message += f" Note: {note}"
        NotificationService.append(booking.user_id, message, store.config.DECISION_PRIORITY)

    @staticmethod
    def approve(booking, note=None):
        """Pending -> Approved, unless another approved booking now overlaps."""
        success, error = BookingService._transition(
            booking, (BookingStatus.PENDING,), BookingStatus.APPROVED, check_clash=True)
        if not success:
            return False, error
        BookingService._notify_requester(booking, 'approved', note)
        return True, "Booking approved."

    @staticmethod
    def reject(booking, note=None):
        success, error = BookingService._transition(booking, (BookingStatus.PENDING,), BookingStatus.REJECTED)
        if not success:
            return False, error
        BookingService._notify_requester(booking, 'rejected', note)
        return True, "Booking rejected."

    @staticmethod
    def cancel(booking, reason=None):
        success, error = BookingService._transition(booking, BookingStatus.CANCELLABLE, BookingStatus.CANCELLED)
        if not success:
            return False, error
        BookingService._notify_requester(booking, 'cancelled', reason)
        message = "Booking cancelled."
        if reason:
            message += f" Reason: {reason}"
        return True, message

"""Error taxonomy shared by the store and the services built on it."""


class StoreError(Exception):
    """Base class for every error raised by campusstore."""


class NotFound(StoreError, LookupError):
    """The id is not indexed or its record file is missing."""

    def __init__(self, family, entity_id):
        self.family = family
        self.entity_id = entity_id
        super().__init__(f"{family} {entity_id} does not exist")


class ParseError(StoreError, ValueError):
    """A record file exists but cannot be decoded."""

    def __init__(self, message, path=None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)


class Conflict(StoreError):
    """The operation would break an availability or state-machine rule."""


class BookingConflict(Conflict):
    def __init__(self, room, date, start_time, end_time):
        self.room = room
        self.date = date
        self.start_time = start_time
        self.end_time = end_time
        super().__init__(
            f"Room {room.room_id} is already booked on {date} "
            f"between {start_time:%H:%M} and {end_time:%H:%M}."
        )


class IOFailure(StoreError):
    """The underlying storage could not be read or written."""

    def __init__(self, path, cause):
        self.path = path
        self.cause = cause
        super().__init__(f"I/O failure on {path}: {cause}")

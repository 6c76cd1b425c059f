"""
Positional line-based record codec.

Every record file is a header line ``%campus <kind> <version>`` followed by one
field per line in a fixed order. Collections are written either on a single
whitespace-separated line (event attendees) or as a section opened by a marker
line (``Bookings``, ``Feedback``) holding one item per line until the end of the
record. Free text is written verbatim on one line, so it must never contain a
line break.
"""
from collections import namedtuple
from datetime import date, datetime, time

from campusstore.errors import ParseError
from campusstore.models import (
    Booking, BookingStatus, Event, Feedback, MaintenanceTicket, Notification,
    Room, TicketStatus, User,
)

HEADER_PREFIX = '%campus'
SCHEMA_VERSION = 1

BOOKINGS_MARKER = 'Bookings'
FEEDBACK_MARKER = 'Feedback'

Field = namedtuple('Field', 'name kind')

# Fixed line order of each record kind, after the header line.
SCHEMAS = {
    'room': (
        Field('room_id', 'int'),
        Field('building_id', 'int'),
        Field('capacity', 'int'),
    ),
    'booking': (
        Field('booking_id', 'int'),
        Field('room_id', 'int'),
        Field('building_id', 'int'),
        Field('user_id', 'int'),
        Field('date', 'date'),
        Field('start_time', 'time'),
        Field('end_time', 'time'),
    ),
    'event': (
        Field('event_id', 'int'),
        Field('last_feedback_id', 'int'),
        Field('creator_id', 'int'),
        Field('title', 'text'),
        Field('description', 'text'),
        Field('room_id', 'int'),
        Field('date', 'date'),
        Field('start_time', 'time'),
        Field('end_time', 'time'),
    ),
    'feedback': (
        Field('feedback_id', 'int'),
        Field('event_id', 'int'),
        Field('author_id', 'int'),
        Field('message', 'text'),
        Field('category', 'text'),
        Field('rating', 'float'),
        Field('created_on', 'date'),
    ),
    'ticket': (
        Field('ticket_id', 'int'),
        Field('requester_id', 'int'),
        Field('description', 'text'),
        Field('created_at', 'timestamp'),
        Field('status', 'text'),
    ),
    'user': (
        Field('user_id', 'int'),
        Field('name', 'text'),
        Field('email', 'text'),
        Field('account_type', 'text'),
    ),
}

KINDS = {
    Room: 'room',
    Booking: 'booking',
    Event: 'event',
    Feedback: 'feedback',
    MaintenanceTicket: 'ticket',
    User: 'user',
}


def format_time(value):
    if value.second or value.microsecond:
        return value.isoformat()
    return value.isoformat(timespec='minutes')


def _check_line(name, value):
    if '\n' in value or '\r' in value:
        raise ValueError(f"{name} must fit on a single line")
    return value


_DUMP = {
    'int': lambda v: str(int(v)),
    'float': lambda v: repr(float(v)),
    'text': lambda v: v,
    'date': lambda v: v.isoformat(),
    'time': format_time,
    'timestamp': lambda v: v.isoformat(),
}

_LOAD = {
    'int': lambda s: int(s.strip()),
    'float': lambda s: float(s.strip()),
    'text': lambda s: s,
    'date': lambda s: date.fromisoformat(s.strip()),
    'time': lambda s: time.fromisoformat(s.strip()),
    'timestamp': lambda s: datetime.fromisoformat(s.strip()),
}


def _dump_fields(kind, entity):
    lines = []
    for f in SCHEMAS[kind]:
        value = _DUMP[f.kind](getattr(entity, f.name))
        lines.append(_check_line(f.name, value))
    return lines


def _split_lines(text):
    lines = text.split('\n')
    if lines and lines[-1] == '':
        lines.pop()
    return [line[:-1] if line.endswith('\r') else line for line in lines]


class _LineReader:
    """Walks the lines of one record, raising ParseError on missing required fields."""

    def __init__(self, kind, text, path=None):
        self.kind = kind
        self.path = path
        self.lines = _split_lines(text)
        self.pos = 0
        self._read_header()

    def fail(self, message):
        raise ParseError(f"{self.kind} record: {message}", self.path)

    def _read_header(self):
        if not self.lines:
            self.fail("empty record")
        parts = self.lines[0].split()
        if len(parts) != 3 or parts[0] != HEADER_PREFIX:
            self.fail(f"missing '{HEADER_PREFIX}' header")
        if parts[1] != self.kind:
            self.fail(f"header names a '{parts[1]}' record")
        try:
            self.version = int(parts[2])
        except ValueError:
            self.fail(f"bad schema version '{parts[2]}'")
        if self.version < 1 or self.version > SCHEMA_VERSION:
            self.fail(f"unsupported schema version {self.version}")
        self.pos = 1

    @property
    def exhausted(self):
        return self.pos >= len(self.lines)

    def field(self, f):
        if self.exhausted:
            self.fail(f"missing required field '{f.name}'")
        raw = self.lines[self.pos]
        self.pos += 1
        try:
            return _LOAD[f.kind](raw)
        except ValueError:
            self.fail(f"bad value {raw!r} for '{f.name}'")

    def fields(self):
        return {f.name: self.field(f) for f in SCHEMAS[self.kind]}

    def optional(self, name, default):
        if self.exhausted:
            return default
        raw = self.lines[self.pos]
        self.pos += 1
        return raw

    def until(self, marker):
        """Non-blank lines up to ``marker`` (consumed). Returns (items, marker_found)."""
        items = []
        while not self.exhausted:
            line = self.lines[self.pos]
            self.pos += 1
            if line == marker:
                return items, True
            if line.strip():
                items.append(line)
        return items, False

    def int_items(self, name):
        items = []
        for line in self.lines[self.pos:]:
            if not line.strip():
                continue
            try:
                items.append(int(line.strip()))
            except ValueError:
                self.fail(f"bad id {line!r} in '{name}'")
        self.pos = len(self.lines)
        return items


# ---- per-kind encoders -----------------------------------------------------

def _encode_room(room):
    lines = _dump_fields('room', room)
    for name in room.equipment:
        _check_line('equipment', name)
        if name == BOOKINGS_MARKER or not name.strip():
            raise ValueError(f"invalid equipment name {name!r}")
        lines.append(name)
    lines.append(BOOKINGS_MARKER)
    lines.extend(str(b) for b in room.booking_ids)
    return lines


def _decode_room(reader):
    values = reader.fields()
    equipment, found = reader.until(BOOKINGS_MARKER)
    booking_ids = reader.int_items('booking_ids') if found else []
    return Room(equipment=equipment, booking_ids=booking_ids, **values)


def _encode_booking(booking):
    if booking.status not in BookingStatus.ALL:
        raise ValueError(f"unknown booking status {booking.status!r}")
    return _dump_fields('booking', booking) + [booking.status]


def _decode_booking(reader):
    values = reader.fields()
    status = reader.optional('status', '').strip() or BookingStatus.PENDING
    if status not in BookingStatus.ALL:
        reader.fail(f"unknown status {status!r}")
    return Booking(status=status, **values)


def _encode_event(event):
    lines = _dump_fields('event', event)
    lines.append(' '.join(str(a) for a in event.attendees))
    lines.append(FEEDBACK_MARKER)
    lines.extend(str(f) for f in event.feedback_ids)
    return lines


def _decode_event(reader):
    values = reader.fields()
    attendees = []
    raw = reader.optional('attendees', '')
    if raw == FEEDBACK_MARKER:
        # attendee line omitted entirely
        raw = ''
        reader.pos -= 1
    for token in raw.split():
        try:
            attendees.append(int(token))
        except ValueError:
            reader.fail(f"bad attendee id {token!r}")
    feedback_ids = []
    if not reader.exhausted:
        if reader.lines[reader.pos] != FEEDBACK_MARKER:
            reader.fail(f"expected '{FEEDBACK_MARKER}' marker")
        reader.pos += 1
        feedback_ids = reader.int_items('feedback_ids')
    return Event(attendees=attendees, feedback_ids=feedback_ids, **values)


def _encode_feedback(feedback):
    return _dump_fields('feedback', feedback)


def _decode_feedback(reader):
    return Feedback(**reader.fields())


def _encode_ticket(ticket):
    if ticket.status not in TicketStatus.ALL:
        raise ValueError(f"unknown ticket status {ticket.status!r}")
    return _dump_fields('ticket', ticket) + [_check_line('comment', ticket.comment)]


def _decode_ticket(reader):
    values = reader.fields()
    if values['status'] not in TicketStatus.ALL:
        reader.fail(f"unknown status {values['status']!r}")
    comment = reader.optional('comment', '')
    return MaintenanceTicket(comment=comment, **values)


def _encode_user(user):
    return _dump_fields('user', user)


def _decode_user(reader):
    return User(**reader.fields())


_CODECS = {
    'room': (_encode_room, _decode_room),
    'booking': (_encode_booking, _decode_booking),
    'event': (_encode_event, _decode_event),
    'feedback': (_encode_feedback, _decode_feedback),
    'ticket': (_encode_ticket, _decode_ticket),
    'user': (_encode_user, _decode_user),
}


def kind_of(entity):
    try:
        return KINDS[type(entity)]
    except KeyError:
        raise TypeError(f"no record layout for {type(entity).__name__}")


def encode(entity):
    """Serialize an entity to the text of its record file."""
    kind = kind_of(entity)
    encoder, _ = _CODECS[kind]
    lines = [f"{HEADER_PREFIX} {kind} {SCHEMA_VERSION}"] + encoder(entity)
    return '\n'.join(lines) + '\n'


def decode(kind, text, path=None):
    """Parse record text of the given kind. Raises ParseError when malformed."""
    if kind not in _CODECS:
        raise TypeError(f"unknown record kind {kind!r}")
    _, decoder = _CODECS[kind]
    return decoder(_LineReader(kind, text, path))


# ---- notification log ------------------------------------------------------

def encode_notification_log(watermark, notifications):
    lines = [str(int(watermark))]
    for n in notifications:
        lines.extend([
            str(n.notification_id),
            str(n.priority),
            _check_line('message', n.message),
            n.timestamp.isoformat(),
        ])
    return '\n'.join(lines) + '\n'


def decode_notification_log(recipient_id, text, path=None):
    """Returns (watermark, unread notifications)."""
    lines = _split_lines(text)
    if not any(line.strip() for line in lines):
        return 0, []
    if not lines[0].strip():
        raise ParseError("missing watermark", path)
    try:
        watermark = int(lines[0].strip())
    except ValueError:
        raise ParseError(f"bad watermark {lines[0]!r}", path)

    entries = lines[1:]
    while entries and not entries[-1].strip():
        entries.pop()
    if len(entries) % 4:
        raise ParseError("truncated notification entry", path)

    notifications = []
    for i in range(0, len(entries), 4):
        raw_id, raw_priority, message, raw_time = entries[i:i + 4]
        try:
            notifications.append(Notification(
                notification_id=int(raw_id.strip()),
                recipient_id=recipient_id,
                message=message,
                priority=int(raw_priority.strip()),
                timestamp=datetime.fromisoformat(raw_time.strip()),
            ))
        except ValueError:
            raise ParseError(f"bad notification entry at line {i + 2}", path)
    return watermark, notifications

from datetime import datetime
from icalendar import Calendar, Event as CalendarEvent
import pytz

from campusstore.extensions import store
from campusstore.services.event_service import EventService
from campusstore.utils.timeutils import localize


class CalendarService:

    @staticmethod
    def event_uid(event):
        return f"event-{event.event_id}@campusstore"

    @staticmethod
    def export_events(events=None):
        """
        Render campus events as an iCalendar feed (bytes).
        Defaults to every stored event.
        """
        if events is None:
            events = EventService.list_events()
        tz_name = store.config.TIMEZONE

        cal = Calendar()
        cal.add('prodid', '-//campusstore//Campus Events//EN')
        cal.add('version', '2.0')
        cal.add('x-wr-timezone', tz_name)

        stamp = datetime.now(pytz.utc)
        for event in events:
            component = CalendarEvent()
            component.add('uid', CalendarService.event_uid(event))
            component.add('summary', event.title)
            if event.description:
                component.add('description', event.description)
            component.add('location', f"Room {event.room_id}")
            component.add('dtstart', localize(datetime.combine(event.date, event.start_time), tz_name))
            component.add('dtend', localize(datetime.combine(event.date, event.end_time), tz_name))
            component.add('dtstamp', stamp)
            component.add('x-attendee-count', str(len(event.attendees)))
            cal.add_component(component)

        return cal.to_ical()

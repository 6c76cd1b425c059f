import shutil
import tempfile
import unittest
from datetime import date, time
from unittest.mock import patch

from icalendar import Calendar

from campusstore import create_store
from campusstore.config import TestingConfig
from campusstore.services.calendar_service import CalendarService
from campusstore.services.event_service import EventService


class TestCalendarExport(unittest.TestCase):
    def setUp(self):
        self.data_dir = tempfile.mkdtemp()
        create_store(TestingConfig, DATA_DIR=self.data_dir)

    def tearDown(self):
        shutil.rmtree(self.data_dir, ignore_errors=True)

    def test_export_events(self):
        event = EventService.create_event(5, 'Orientation', 'Welcome week', 101,
                                          date(2099, 9, 1), time(14), time(16))
        EventService.register_attendee(event, 9)
        EventService.register_attendee(event, 10)

        cal = Calendar.from_ical(CalendarService.export_events())
        components = [c for c in cal.walk() if c.name == 'VEVENT']

        self.assertEqual(len(components), 1)
        vevent = components[0]
        self.assertEqual(str(vevent.get('summary')), 'Orientation')
        self.assertEqual(str(vevent.get('uid')), 'event-1@campusstore')
        self.assertEqual(str(vevent.get('location')), 'Room 101')
        self.assertEqual(str(vevent.get('x-attendee-count')), '2')

        start = vevent.get('dtstart').dt
        self.assertEqual((start.hour, start.minute), (14, 0))
        self.assertEqual(start.date(), date(2099, 9, 1))
        self.assertEqual(vevent['dtstart'].params['TZID'], 'Europe/Paris')

    def test_export_empty_store(self):
        cal = Calendar.from_ical(CalendarService.export_events())
        self.assertEqual([c for c in cal.walk() if c.name == 'VEVENT'], [])
        self.assertEqual(str(cal.get('x-wr-timezone')), 'Europe/Paris')

    @patch('campusstore.services.calendar_service.EventService.list_events')
    def test_export_uses_stored_events_by_default(self, mock_list):
        mock_list.return_value = []
        CalendarService.export_events()
        mock_list.assert_called_once_with()

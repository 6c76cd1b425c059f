from datetime import date, time
from unittest.mock import patch

import pytest

from campusstore.errors import NotFound
from campusstore.services.event_service import EventService
from campusstore.services.notification_service import NotificationService


@pytest.fixture
def event(store):
    return EventService.create_event(5, 'Orientation', 'Welcome week', 101,
                                     date(2099, 9, 1), time(14), time(16))


def test_roster_registration_is_idempotent(event):
    assert event.event_id == 1
    assert EventService.register_attendee(event, 9)
    assert not EventService.register_attendee(event, 9)
    assert EventService.get_event(1).attendees == [9]

    assert EventService.unregister_attendee(event, 9)
    assert EventService.get_event(1).attendees == []
    assert not EventService.unregister_attendee(event, 9)


def test_update_details(event):
    EventService.update_details(event, description='Moved upstairs', room_id=2204)
    stored = EventService.get_event(event.event_id)
    assert stored.description == 'Moved upstairs'
    assert stored.room_id == 2204
    assert stored.title == 'Orientation'


def test_update_details_refuses_unknown_fields(event):
    with pytest.raises(TypeError):
        EventService.update_details(event, title='Renamed')


def test_list_events_for_user(event):
    other = EventService.create_event(6, 'Seminar', '', 102, date(2099, 9, 2), time(9), time(10))
    EventService.register_attendee(other, 5)
    EventService.create_event(6, 'Workshop', '', 103, date(2099, 9, 3), time(9), time(10))

    assert [e.title for e in EventService.list_events()] == ['Orientation', 'Seminar', 'Workshop']
    assert [e.title for e in EventService.list_events(user_id=5)] == ['Orientation', 'Seminar']


@patch('campusstore.services.event_service.local_now')
def test_feedback_ids_are_never_reused(mock_now, event):
    mock_now.return_value.date.return_value = date(2099, 9, 2)

    first = EventService.add_feedback(event, 9, 'Too fast', 'Teaching Pace', 3)
    second = EventService.add_feedback(event, 10, 'Great', 'Content', 5)
    assert (first.feedback_id, second.feedback_id) == (1, 2)
    assert first.created_on == date(2099, 9, 2)

    assert EventService.delete_feedback(event, 2)
    assert not EventService.delete_feedback(event, 2)
    third = EventService.add_feedback(event, 11, 'Useful', 'Content', 4.5)
    assert third.feedback_id == 3

    stored = EventService.get_event(event.event_id)
    assert stored.last_feedback_id == 3
    assert [f.message for f in EventService.get_feedback(stored)] == ['Too fast', 'Useful']


def test_cancel_event_notifies_attendees_with_a_log(event):
    EventService.register_attendee(event, 9)
    EventService.register_attendee(event, 10)
    NotificationService.append(9, 'Welcome', 2)

    results = EventService.cancel_event(event)

    by_user = {r.recipient_id: r for r in results}
    assert by_user[9].delivered
    assert not by_user[10].delivered
    assert not NotificationService.has_log(10)
    assert NotificationService.load_unread(9)[-1].message == 'The event Orientation has been cancelled'
    assert NotificationService.load_unread(9)[-1].priority == 0

    with pytest.raises(NotFound):
        EventService.get_event(event.event_id)


def test_cancel_event_removes_feedback_and_retires_id(event):
    EventService.add_feedback(event, 9, 'Good', 'Content', 4)
    EventService.cancel_event(event)

    assert EventService.get_feedback(event) == []
    replacement = EventService.create_event(5, 'Orientation II', '', 101, date(2099, 9, 8), time(14), time(16))
    assert replacement.event_id == 2

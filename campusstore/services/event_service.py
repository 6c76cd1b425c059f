import logging

from campusstore.errors import NotFound, StoreError
from campusstore.extensions import store
from campusstore.models import DeliveryResult, Event, Feedback
from campusstore.services.notification_service import NotificationService
from campusstore.utils.timeutils import local_now

logger = logging.getLogger(__name__)


class EventService:

    EDITABLE_FIELDS = ('description', 'room_id', 'date', 'start_time', 'end_time')

    @staticmethod
    def _lock(event_id):
        return store.locks.lock_for(('event', event_id))

    @staticmethod
    def _sync(event, current):
        event.attendees = list(current.attendees)
        event.last_feedback_id = current.last_feedback_id
        event.feedback_ids = list(current.feedback_ids)

    @staticmethod
    def create_event(creator_id, title, description, room_id, date, start_time, end_time):
        if end_time <= start_time:
            raise ValueError("end_time must be after start_time")
        event = store.events.create(lambda new_id: Event(
            event_id=new_id,
            creator_id=creator_id,
            title=title,
            description=description or '',
            room_id=room_id,
            date=date,
            start_time=start_time,
            end_time=end_time,
        ))
        logger.info("Event %d '%s' scheduled by user %s", event.event_id, title, creator_id)
        return event

    @staticmethod
    def get_event(event_id):
        return store.events.load(event_id)

    @staticmethod
    def list_events(user_id=None):
        """Every event, or only those the user created or attends."""
        events = store.events.load_all()
        if user_id is not None:
            events = [e for e in events if e.involves(user_id)]
        return events

    @staticmethod
    def update_details(event, **fields):
        unknown = set(fields) - set(EventService.EDITABLE_FIELDS)
        if unknown:
            raise TypeError(f"Cannot update event field(s): {', '.join(sorted(unknown))}")

        with EventService._lock(event.event_id):
            current = EventService.get_event(event.event_id)
            for name, value in fields.items():
                setattr(current, name, value)
            if current.end_time <= current.start_time:
                raise ValueError("end_time must be after start_time")
            store.events.save(current)
        for name, value in fields.items():
            setattr(event, name, value)
        EventService._sync(event, current)

    @staticmethod
    def register_attendee(event, user_id):
        """Returns False if the user was already registered (nothing written)."""
        with EventService._lock(event.event_id):
            current = EventService.get_event(event.event_id)
            added = user_id not in current.attendees
            if added:
                current.attendees.append(user_id)
                store.events.save(current)
        EventService._sync(event, current)
        return added

    @staticmethod
    def unregister_attendee(event, user_id):
        """Returns False if the user was not registered (nothing written)."""
        with EventService._lock(event.event_id):
            current = EventService.get_event(event.event_id)
            removed = user_id in current.attendees
            if removed:
                current.attendees.remove(user_id)
                store.events.save(current)
        EventService._sync(event, current)
        return removed

    @staticmethod
    def add_feedback(event, author_id, message, category, rating):
        """
        Issue the event's next feedback id, write the feedback record and list it
        on the event. Feedback ids are never reused, even after deletion.
        """
        with EventService._lock(event.event_id):
            current = EventService.get_event(event.event_id)
            current.last_feedback_id += 1
            feedback = Feedback(
                feedback_id=current.last_feedback_id,
                event_id=current.event_id,
                author_id=author_id,
                message=message,
                category=category,
                rating=float(rating),
                created_on=local_now(store.config.TIMEZONE).date(),
            )
            store.feedback(current.event_id).insert(feedback)
            current.feedback_ids.append(feedback.feedback_id)
            store.events.save(current)
        EventService._sync(event, current)
        return feedback

    @staticmethod
    def get_feedback(event):
        return store.feedback(event.event_id).load_many(event.feedback_ids)

    @staticmethod
    def delete_feedback(event, feedback_id):
        """Remove one feedback entry; its id stays retired on the event counter."""
        with EventService._lock(event.event_id):
            current = EventService.get_event(event.event_id)
            if feedback_id not in current.feedback_ids:
                return False
            current.feedback_ids.remove(feedback_id)
            store.events.save(current)
            try:
                store.feedback(current.event_id).delete(feedback_id)
            except NotFound:
                logger.warning("Feedback %d of event %d was already gone", feedback_id, current.event_id)
        EventService._sync(event, current)
        return True

    @staticmethod
    def notify_cancellation(event):
        """
        Tell every attendee the event is off. Attendees without a notification
        log are skipped; the result lists what happened to each recipient.
        """
        message = f"The event {event.title} has been cancelled"
        priority = store.config.CANCELLED_EVENT_PRIORITY
        results = []
        for attendee in event.attendees:
            try:
                result = NotificationService.deliver(attendee, message, priority, create=False)
            except StoreError as e:
                logger.error("Could not notify user %s of event %d cancellation: %s", attendee, event.event_id, e)
                result = DeliveryResult(attendee, False, reason=str(e))
            results.append(result)
        return results

    @staticmethod
    def delete_event(event):
        """Delete the event record and its feedback records. The id stays retired."""
        feedback_repo = store.feedback(event.event_id)
        for feedback_id in event.feedback_ids:
            try:
                feedback_repo.delete(feedback_id)
            except NotFound:
                logger.warning("Feedback %d of event %d was already gone", feedback_id, event.event_id)
        store.events.delete(event.event_id)

    @staticmethod
    def cancel_event(event):
        """Notify attendees, then delete the event and its feedback."""
        with EventService._lock(event.event_id):
            current = EventService.get_event(event.event_id)
            results = EventService.notify_cancellation(current)
            EventService.delete_event(current)

        delivered = sum(1 for r in results if r.delivered)
        logger.info("Event %d cancelled; %d of %d attendee(s) notified",
                    current.event_id, delivered, len(results))
        return results

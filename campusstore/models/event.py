from dataclasses import dataclass, field
from datetime import date, time
from typing import List


@dataclass
class Event:
    event_id: int
    creator_id: int
    title: str
    description: str
    room_id: int
    date: date
    start_time: time
    end_time: time
    attendees: List[int] = field(default_factory=list)
    last_feedback_id: int = 0
    feedback_ids: List[int] = field(default_factory=list)

    def involves(self, user_id):
        """True if the user created the event or is on its roster."""
        return self.creator_id == user_id or user_id in self.attendees

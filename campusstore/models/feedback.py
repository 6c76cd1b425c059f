from dataclasses import dataclass
from datetime import date


@dataclass
class Feedback:
    feedback_id: int
    event_id: int
    author_id: int
    message: str
    category: str
    rating: float
    created_on: date

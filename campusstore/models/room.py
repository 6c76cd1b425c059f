from dataclasses import dataclass, field
from typing import List


@dataclass
class Room:
    room_id: int
    building_id: int
    capacity: int
    equipment: List[str] = field(default_factory=list)  # e.g. ["projector", "whiteboard"]
    booking_ids: List[int] = field(default_factory=list)

    @property
    def level(self):
        # Room numbers encode their floor: 1204 is on level 1
        return self.room_id // 1000

    def has_equipment(self, required):
        """Case-insensitive check that every required item is present."""
        room_eq_lower = [e.lower() for e in self.equipment]
        return all(req.lower() in room_eq_lower for req in required)

from campusstore import create_store
from campusstore.errors import Conflict
from campusstore.services.booking_service import BookingService
from campusstore.services.user_service import UserService

store = create_store()

# Create Admin
try:
    UserService.create_user('Administrator', 'admin@campus.edu', 'Admin', user_id=1)
    print("Admin created (id 1)")
except Conflict:
    pass

# Create Rooms
rooms_data = [
    {"building_id": 1, "room_id": 101, "capacity": 30, "equipment": ["Projector", "Whiteboard"]},
    {"building_id": 1, "room_id": 102, "capacity": 12, "equipment": ["TV"]},
    {"building_id": 1, "room_id": 1204, "capacity": 80, "equipment": ["Projector", "Sound system"]},
    {"building_id": 2, "room_id": 10, "capacity": 4, "equipment": ["Desk"]},
]

for r_data in rooms_data:
    try:
        room = BookingService.create_room(**r_data)
        print(f"Room {room.building_id}/{room.room_id} created.")
    except Conflict:
        pass

print(f"Store seeded successfully in {store.data_dir}.")

import os

from campusstore.storage.repository import EntityRepository, Family
from campusstore.storage.sequencer import IdSequencer
from campusstore.utils.locks import KeyedLocks


class DataStore:
    """
    Directory layout of the flat-file store, bound to a data directory by
    ``init_app``. Hands out repositories for each family and scope.
    """

    def __init__(self):
        self.config = None
        self.data_dir = None
        self.locks = KeyedLocks()
        self.sequencer = IdSequencer(self.locks)

    def init_app(self, config):
        self.config = config
        self.data_dir = os.path.abspath(config.DATA_DIR)
        self.locks.clear()

    def _path(self, *parts):
        if self.data_dir is None:
            raise RuntimeError("Store is not initialised; call create_store() first.")
        return os.path.join(self.data_dir, *parts)

    # --- map: buildings, rooms, bookings ---

    @property
    def building_index(self):
        return self._path('map', 'buildingIDs.txt')

    def rooms(self, building_id):
        return EntityRepository(Family(
            'room', 'room',
            prefix=self._path('map', f'{building_id}-'),
            index_path=self._path('map', f'{building_id}.txt'),
        ), self.sequencer)

    def bookings(self, building_id, room_id):
        return EntityRepository(Family(
            'booking', 'booking',
            prefix=self._path('map', f'{building_id}-{room_id}-'),
            index_path=self._path('map', f'{building_id}-{room_id}-IDs.txt'),
        ), self.sequencer)

    # --- events and their feedback ---

    @property
    def events(self):
        return EntityRepository(Family(
            'event', 'event',
            prefix=self._path('events', ''),
            index_path=self._path('events', 'eventIDs.txt'),
        ), self.sequencer)

    def feedback(self, event_id):
        # feedback ids come from the event's own counter
        return EntityRepository(Family(
            'feedback', 'feedback',
            prefix=self._path('events', f'{event_id}-'),
        ), self.sequencer)

    # --- maintenance tickets and users ---

    @property
    def tickets(self):
        return EntityRepository(Family(
            'ticket', 'ticket',
            prefix=self._path('requests', ''),
            index_path=self._path('requests', 'IDs.txt'),
        ), self.sequencer)

    @property
    def users(self):
        return EntityRepository(Family(
            'user', 'user',
            prefix=self._path('users', ''),
            index_path=self._path('users', 'userIDs.txt'),
        ), self.sequencer)

    def notification_log(self, user_id):
        return self._path('users', f'{int(user_id)}notifications.txt')


store = DataStore()

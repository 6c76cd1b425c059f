import logging

from campusstore.errors import StoreError
from campusstore.extensions import store
from campusstore.models import AccountType, DeliveryResult, User
from campusstore.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class UserService:

    @staticmethod
    def create_user(name, email, account_type=AccountType.STUDENT, user_id=None):
        if account_type not in AccountType.ALL:
            raise ValueError(f"Unknown account type: {account_type}")
        repo = store.users
        if user_id is None:
            user = repo.create(lambda new_id: User(new_id, name, email, account_type))
        else:
            user = repo.insert(User(user_id, name, email, account_type))
        return user

    @staticmethod
    def get_user(user_id):
        return store.users.load(user_id)

    @staticmethod
    def list_users():
        return store.users.load_all()

    @staticmethod
    def update_profile(user, name, email):
        with store.locks.lock_for(('user', user.user_id)):
            current = UserService.get_user(user.user_id)
            current.name = name
            current.email = email
            store.users.save(current)
        user.name = name
        user.email = email

    @staticmethod
    def audience_ids(audience='all'):
        """User ids in a broadcast audience: all, faculty (200+) or students (300+)."""
        config = store.config
        floors = {
            'all': None,
            'faculty': config.FACULTY_ID_FLOOR,
            'students': config.STUDENT_ID_FLOOR,
        }
        if audience not in floors:
            raise ValueError(f"Unknown audience: {audience}")
        floor = floors[audience]
        ids = store.users.list_ids()
        return ids if floor is None else [i for i in ids if i >= floor]

    @staticmethod
    def broadcast(message, audience='all', priority=None):
        if priority is None:
            priority = store.config.BROADCAST_PRIORITY
        results = []
        for user_id in UserService.audience_ids(audience):
            try:
                results.append(NotificationService.deliver(user_id, message, priority))
            except StoreError as e:
                logger.error("Broadcast to user %s failed: %s", user_id, e)
                results.append(DeliveryResult(user_id, False, reason=str(e)))
        logger.info("Broadcast to %s: %d recipient(s)", audience, len(results))
        return results

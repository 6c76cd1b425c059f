from dataclasses import dataclass


class AccountType:
    STUDENT = 'Student'
    FACULTY = 'Faculty'
    ADMIN = 'Admin'
    MAINTENANCE_STAFF = 'MaintenanceStaff'

    ALL = (STUDENT, FACULTY, ADMIN, MAINTENANCE_STAFF)


@dataclass
class User:
    user_id: int
    name: str
    email: str
    account_type: str = AccountType.STUDENT

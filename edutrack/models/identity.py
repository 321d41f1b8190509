"""Identity kinds shared by participants, senders and recipients."""

import enum


class UserType(str, enum.Enum):
    """Roles a human identity can hold."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


class SenderType(str, enum.Enum):
    """Who can originate a notification. ``system`` has no user id."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"
    SYSTEM = "system"


USER_TYPES = frozenset(t.value for t in UserType)

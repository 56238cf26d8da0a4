from .user import Role, User
from .hostel import Hostel
from .student import Student
from .laundry_slot import LaundrySlot, SlotStatus, TimeWindow, TIME_WINDOWS
from .audit_log import AuditLog

__all__ = [
    "Role", "User",
    "Hostel", "Student",
    "LaundrySlot", "SlotStatus", "TimeWindow", "TIME_WINDOWS",
    "AuditLog",
]

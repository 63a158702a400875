from schoolhub.models.activity_log import ActivityLog  # noqa: F401
from schoolhub.models.staff_assignment import StaffAssignment  # noqa: F401
from schoolhub.models.timetable import ClassTimetable, TimetablePeriod  # noqa: F401
from schoolhub.models.user import User, UserRole  # noqa: F401

from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.eligibility import TeacherClassAssignment, TeacherSubjectEligibility  # noqa: F401
from app.models.school import ClassSection, Subject, Teacher  # noqa: F401
from app.models.substitution import TimetableSubstitution  # noqa: F401
from app.models.timetable_requirement import TimetableRequirement  # noqa: F401
from app.models.timetable_settings import TimetableSettings  # noqa: F401
from app.models.timetable_slot import SlotSource, TimetableSlot  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401

# Database models

from edura.models.user import User
from edura.models.classroom import ClassSchedule, Classroom, Enrollment, ScheduleColor
from edura.models.attendance import AttendanceLog, AttendanceStatus
from edura.models.billing import BillingStatus, PaymentMethod, TuitionBilling
from edura.models.coursework import Assignment, AssignmentType, Lecture, LectureType, Submission
from edura.models.payroll import TeacherRate, TeacherRateType, TutorPayment
from edura.models.resource import Resource

__all__ = [
    "User",
    "Classroom",
    "Enrollment",
    "ClassSchedule",
    "ScheduleColor",
    "AttendanceLog",
    "AttendanceStatus",
    "TuitionBilling",
    "BillingStatus",
    "PaymentMethod",
    "TeacherRate",
    "TeacherRateType",
    "TutorPayment",
    "Lecture",
    "LectureType",
    "Assignment",
    "AssignmentType",
    "Submission",
    "Resource",
]

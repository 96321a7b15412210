"""SQLAlchemy models for Homework Grader."""

from .enums import GradingStatus
from .classroom import Classroom, ClassroomMembership
from .assignment import Assignment
from .submission import Submission

__all__ = [
    "GradingStatus",
    "Classroom",
    "ClassroomMembership",
    "Assignment",
    "Submission",
]

"""Classroom and ClassroomMembership models."""

from datetime import datetime, UTC

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
import uuid

from ..database import Base


class Classroom(Base):
    """Classroom model."""
    __tablename__ = "classrooms"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    teacher_id = Column(String(100), nullable=False)
    secret_code = Column(String(16), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC))

    # Relationships
    assignments = relationship(
        "Assignment",
        back_populates="classroom",
        cascade="all, delete-orphan",
        order_by="Assignment.created_at",
    )
    memberships = relationship(
        "ClassroomMembership",
        back_populates="classroom",
        cascade="all, delete-orphan",
        order_by="ClassroomMembership.joined_at",
    )

    def __repr__(self):
        return f"<Classroom(id={self.id}, name='{self.name}')>"

    @property
    def student_ids(self):
        """Students who joined this classroom, in join order."""
        return [m.student_id for m in self.memberships]

    def has_student(self, student_id: str) -> bool:
        return student_id in self.student_ids

    def get_assignment(self, assignment_id: str):
        """Get a specific assignment by id."""
        for assignment in self.assignments:
            if assignment.id == assignment_id:
                return assignment
        return None


class ClassroomMembership(Base):
    """A student's membership in a classroom."""
    __tablename__ = "classroom_memberships"

    classroom_id = Column(String(36), ForeignKey("classrooms.id", ondelete="CASCADE"), primary_key=True)
    student_id = Column(String(100), primary_key=True)
    joined_at = Column(DateTime, default=lambda: datetime.now(UTC))

    classroom = relationship("Classroom", back_populates="memberships")

    def __repr__(self):
        return f"<ClassroomMembership(classroom_id={self.classroom_id}, student_id='{self.student_id}')>"

"""Assignment model."""

from datetime import datetime, UTC

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
import uuid

from ..database import Base


class Assignment(Base):
    """Assignment model."""
    __tablename__ = "assignments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    classroom_id = Column(String(36), ForeignKey("classrooms.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC))

    # Relationships
    classroom = relationship("Classroom", back_populates="assignments")
    submissions = relationship(
        "Submission",
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="Submission.submitted_at",
    )

    def __repr__(self):
        return f"<Assignment(id={self.id}, title='{self.title}')>"

    @property
    def submission_count(self):
        """Get count of submissions for this assignment."""
        return len(self.submissions)

    @property
    def graded_count(self):
        return sum(1 for s in self.submissions if s.is_graded)

    def get_submission_for(self, student_id: str):
        """Get the live submission of a student, if any."""
        for submission in self.submissions:
            if submission.student_id == student_id:
                return submission
        return None

"""Submission model."""

from datetime import datetime, UTC

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Boolean, Integer, JSON, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid

from ..database import Base
from ..grading import GradingDocument
from .enums import GradingStatus


class Submission(Base):
    """A student's homework for one assignment.

    ``draft_evaluation`` is the teacher's working copy of the grading document;
    ``evaluation`` is what the student sees once ``is_graded`` is set.
    """
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assignment_id = Column(String(36), ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(String(100), nullable=False)
    file_name = Column(String(255))
    mime_type = Column(String(100), default="image/jpeg")
    file_data = Column(Text, nullable=False)
    page_count = Column(Integer, default=1)
    submitted_at = Column(DateTime, default=lambda: datetime.now(UTC))
    draft_evaluation = Column(JSON, nullable=True)
    evaluation = Column(JSON, nullable=True)
    is_graded = Column(Boolean, default=False, nullable=False)
    grading_status = Column(SQLEnum(GradingStatus), default=GradingStatus.idle, nullable=False)
    # Identifies the in-flight grading call; results from any other call are discarded
    grading_attempt = Column(String(36), nullable=True)
    graded_at = Column(DateTime, nullable=True)

    # Relationships
    assignment = relationship("Assignment", back_populates="submissions")

    def __repr__(self):
        return f"<Submission(id={self.id}, student_id='{self.student_id}')>"

    @property
    def is_grading(self):
        """Check if a grading call is in flight."""
        return self.grading_status == GradingStatus.processing

    @property
    def has_draft(self):
        return self.draft_evaluation is not None

    def get_draft(self):
        """Draft grading document, or None if grading has not started."""
        if self.draft_evaluation is None:
            return None
        return GradingDocument.from_wire(self.draft_evaluation)

    def set_draft(self, document):
        """Store the draft; assign a new dict so the JSON column is flagged dirty."""
        self.draft_evaluation = document.to_wire() if document is not None else None

    def get_evaluation(self):
        """Published grading document, or None until graded."""
        if self.evaluation is None:
            return None
        return GradingDocument.from_wire(self.evaluation)

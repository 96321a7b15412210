"""Test cases for SQLAlchemy models."""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import FlushError

from gradebook.grading import GradingDocument
from gradebook.models import (
    Classroom, ClassroomMembership,
    Assignment, Submission, GradingStatus
)

from conftest import SAMPLE_IMAGE_BASE64


class TestClassroomModel:
    """Test cases for Classroom model."""

    def test_create_classroom(self, db_session):
        """Test creating a classroom."""
        classroom = Classroom(name="Geometry", teacher_id="teacher-01", secret_code="XYZ789")
        db_session.add(classroom)
        db_session.commit()

        assert classroom.id is not None
        assert classroom.name == "Geometry"
        assert classroom.teacher_id == "teacher-01"
        assert classroom.created_at is not None
        assert classroom.student_ids == []

    def test_classroom_repr(self, sample_classroom):
        """Test classroom string representation."""
        repr_str = repr(sample_classroom)
        assert "Classroom" in repr_str
        assert str(sample_classroom.id) in repr_str
        assert sample_classroom.name in repr_str

    def test_secret_code_unique(self, db_session, sample_classroom):
        """Test that secret codes must be unique."""
        duplicate = Classroom(name="Other", teacher_id="teacher-01", secret_code=sample_classroom.secret_code)
        db_session.add(duplicate)

        with pytest.raises(IntegrityError):
            db_session.flush()

    def test_membership(self, db_session, sample_classroom):
        """Test students joining a classroom."""
        sample_classroom.memberships.append(ClassroomMembership(student_id="student-01"))
        sample_classroom.memberships.append(ClassroomMembership(student_id="student-02"))
        db_session.commit()

        assert sample_classroom.student_ids == ["student-01", "student-02"]
        assert sample_classroom.has_student("student-02") is True
        assert sample_classroom.has_student("student-03") is False

    def test_duplicate_membership(self, db_session, sample_classroom):
        """A student can join a classroom only once."""
        db_session.add(ClassroomMembership(classroom_id=sample_classroom.id, student_id="student-01"))
        db_session.flush()
        db_session.add(ClassroomMembership(classroom_id=sample_classroom.id, student_id="student-01"))

        with pytest.raises((IntegrityError, FlushError)):
            db_session.flush()


class TestAssignmentModel:
    """Test cases for Assignment model."""

    def test_create_assignment(self, db_session, sample_classroom):
        """Test creating an assignment."""
        assignment = Assignment(title="Quadratics", classroom_id=sample_classroom.id)
        db_session.add(assignment)
        db_session.commit()

        assert assignment.id is not None
        assert assignment.created_at is not None
        assert assignment.submission_count == 0
        assert assignment.graded_count == 0

    def test_assignment_repr(self, sample_assignment):
        repr_str = repr(sample_assignment)
        assert "Assignment" in repr_str
        assert sample_assignment.title in repr_str

    def test_get_submission_for(self, sample_assignment, sample_submission):
        assert sample_assignment.get_submission_for("student-01") == sample_submission
        assert sample_assignment.get_submission_for("student-99") is None


class TestSubmissionModel:
    """Test cases for Submission model."""

    def test_create_submission(self, db_session, sample_assignment):
        """Test creating a submission."""
        submission = Submission(
            assignment_id=sample_assignment.id,
            student_id="student-02",
            file_name="page.jpg",
            file_data=SAMPLE_IMAGE_BASE64,
        )
        db_session.add(submission)
        db_session.commit()

        assert submission.id is not None
        assert submission.submitted_at is not None
        assert submission.mime_type == "image/jpeg"
        assert submission.page_count == 1
        assert submission.is_graded is False
        assert submission.grading_status == GradingStatus.idle
        assert submission.evaluation is None
        assert submission.has_draft is False

    def test_one_submission_per_student(self, db_session, sample_submission):
        """Test that a student has at most one submission per assignment."""
        duplicate = Submission(
            assignment_id=sample_submission.assignment_id,
            student_id=sample_submission.student_id,
            file_data=SAMPLE_IMAGE_BASE64,
        )
        db_session.add(duplicate)

        with pytest.raises(IntegrityError):
            db_session.flush()

    def test_draft_round_trip(self, db_session, sample_submission, sample_document):
        """The draft is stored in wire format and read back as a document."""
        sample_submission.set_draft(sample_document)
        db_session.commit()
        db_session.refresh(sample_submission)

        assert sample_submission.has_draft is True
        assert sample_submission.draft_evaluation["problem_breakdown"][0]["errors"][0]["boundingBox"]["x"] == 0.1
        assert sample_submission.get_draft() == sample_document

    def test_draft_update_is_persisted(self, db_session, sample_submission, sample_document):
        """Reassigning the draft flags the JSON column as changed."""
        sample_submission.set_draft(sample_document)
        db_session.commit()

        updated = sample_document.model_copy(deep=True)
        updated.overall_score = 12
        sample_submission.set_draft(updated)
        db_session.commit()
        db_session.expire(sample_submission)

        assert sample_submission.get_draft().overall_score == 12

    def test_evaluation_none_until_published(self, sample_submission):
        assert sample_submission.get_evaluation() is None

    def test_evaluation_document(self, db_session, sample_submission, sample_document):
        sample_submission.evaluation = sample_document.to_wire()
        sample_submission.is_graded = True
        db_session.commit()

        assert isinstance(sample_submission.get_evaluation(), GradingDocument)
        assert sample_submission.get_evaluation().overall_score == 90

    def test_grading_status_helpers(self, sample_submission):
        sample_submission.grading_status = GradingStatus.processing
        assert sample_submission.is_grading is True

        sample_submission.grading_status = GradingStatus.failed
        assert sample_submission.is_grading is False

    def test_submission_repr(self, sample_submission):
        repr_str = repr(sample_submission)
        assert "Submission" in repr_str
        assert sample_submission.student_id in repr_str

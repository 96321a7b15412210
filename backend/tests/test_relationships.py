"""Test cases for model relationships."""

from gradebook.models import Classroom, ClassroomMembership, Assignment, Submission

from conftest import SAMPLE_IMAGE_BASE64


class TestModelRelationships:
    """Test cases for model relationships."""

    def test_classroom_assignment_relationship(self, db_session, sample_classroom):
        """Test bidirectional classroom-assignment relationship."""
        assignment1 = Assignment(title="Assignment 1", classroom_id=sample_classroom.id)
        assignment2 = Assignment(title="Assignment 2", classroom_id=sample_classroom.id)

        db_session.add_all([assignment1, assignment2])
        db_session.commit()
        db_session.refresh(sample_classroom)

        # Test forward relationship
        assert assignment1.classroom == sample_classroom
        assert assignment2.classroom == sample_classroom

        # Test reverse relationship
        assert len(sample_classroom.assignments) == 2
        assert assignment1 in sample_classroom.assignments
        assert sample_classroom.get_assignment(assignment2.id) == assignment2
        assert sample_classroom.get_assignment("missing") is None

    def test_assignment_submission_relationship(self, db_session, sample_assignment):
        """Test assignment-submission relationship."""
        submission1 = Submission(assignment_id=sample_assignment.id, student_id="student-01", file_data=SAMPLE_IMAGE_BASE64)
        submission2 = Submission(assignment_id=sample_assignment.id, student_id="student-02", file_data=SAMPLE_IMAGE_BASE64)

        db_session.add_all([submission1, submission2])
        db_session.commit()
        db_session.refresh(sample_assignment)

        assert submission1.assignment == sample_assignment
        assert len(sample_assignment.submissions) == 2
        assert sample_assignment.submission_count == 2

    def test_membership_relationship(self, db_session, sample_classroom):
        membership = ClassroomMembership(classroom_id=sample_classroom.id, student_id="student-01")
        db_session.add(membership)
        db_session.commit()
        db_session.refresh(sample_classroom)

        assert membership.classroom == sample_classroom
        assert sample_classroom.memberships == [membership]

    def test_cascade_delete_classroom(self, db_session, sample_classroom, sample_assignment, sample_submission):
        """Deleting a classroom removes its assignments and submissions."""
        sample_classroom.memberships.append(ClassroomMembership(student_id="student-01"))
        db_session.commit()

        classroom_id = sample_classroom.id
        assignment_id = sample_assignment.id
        submission_id = sample_submission.id

        db_session.delete(sample_classroom)
        db_session.commit()

        assert db_session.get(Classroom, classroom_id) is None
        assert db_session.get(Assignment, assignment_id) is None
        assert db_session.get(Submission, submission_id) is None
        assert db_session.query(ClassroomMembership).filter_by(classroom_id=classroom_id).count() == 0

    def test_delete_orphan_submission(self, db_session, sample_assignment, sample_submission):
        """Removing a submission from its assignment deletes the row."""
        submission_id = sample_submission.id
        db_session.refresh(sample_assignment)

        sample_assignment.submissions.remove(sample_submission)
        db_session.commit()

        assert db_session.get(Submission, submission_id) is None

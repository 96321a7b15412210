"""Classroom, assignment and submission registry."""

import logging
import secrets
import string
import uuid
from datetime import datetime, UTC
from typing import Iterable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import DEFAULT_MAX_SCORE, DEFAULT_TEACHER_ID, SECRET_CODE_LENGTH
from ..grading import GradingDocument, GradingEditor, InvalidEditError
from ..models import Assignment, Classroom, ClassroomMembership, GradingStatus, Submission

logger = logging.getLogger(__name__)


class ClassroomRegistry:
    def __init__(self, db: Session, teacher_id: str = DEFAULT_TEACHER_ID, default_max_score: int = DEFAULT_MAX_SCORE):
        self.db = db
        self.teacher_id = teacher_id
        self.default_max_score = default_max_score

    def _commit(self, action: str) -> None:
        """Commit the unit of work, or roll it back entirely."""
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to {action}. Please try again."
            )

    @staticmethod
    def generate_secret_code(length: int = SECRET_CODE_LENGTH) -> str:
        """Generate a classroom join code."""
        alphabet = string.ascii_uppercase + string.digits
        return ''.join(secrets.choice(alphabet) for _ in range(length))

    # -------- Classrooms --------
    def list_classrooms(self, student_id: Optional[str] = None) -> List[Classroom]:
        """List classrooms, optionally only those a student has joined."""
        query = self.db.query(Classroom)
        if student_id:
            query = query.join(ClassroomMembership).filter(ClassroomMembership.student_id == student_id)
        return query.order_by(Classroom.created_at).all()

    def create_classroom(self, name: str) -> Classroom:
        """Create a classroom owned by the current teacher."""
        secret_code = self.generate_secret_code()
        while self.db.query(Classroom).filter(Classroom.secret_code == secret_code).first():
            secret_code = self.generate_secret_code()

        classroom = Classroom(name=name, teacher_id=self.teacher_id, secret_code=secret_code)
        self.db.add(classroom)
        self._commit("create classroom")
        self.db.refresh(classroom)
        logger.info(f"Created classroom {classroom.id} with code {classroom.secret_code}")
        return classroom

    def get_classroom(self, classroom_id: str) -> Classroom:
        classroom = self.db.query(Classroom).filter(Classroom.id == classroom_id).first()
        if not classroom:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Classroom not found.")
        return classroom

    def join_classroom(self, secret_code: str, student_id: str) -> Classroom:
        """Add a student to the classroom with the given code (case-insensitive)."""
        classroom = self.db.query(Classroom).filter(
            Classroom.secret_code == secret_code.strip().upper()
        ).first()
        if not classroom:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Invalid classroom code. Please try again."
            )
        if classroom.has_student(student_id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You are already in this classroom."
            )

        classroom.memberships.append(ClassroomMembership(student_id=student_id))
        self._commit("join classroom")
        self.db.refresh(classroom)
        logger.info(f"Student {student_id} joined classroom {classroom.id}")
        return classroom

    # -------- Assignments --------
    def create_assignment(self, classroom_id: str, title: str) -> Assignment:
        classroom = self.get_classroom(classroom_id)
        assignment = Assignment(title=title)
        classroom.assignments.append(assignment)
        self._commit("create assignment")
        self.db.refresh(assignment)
        return assignment

    def get_assignment(self, classroom_id: str, assignment_id: str) -> Assignment:
        classroom = self.get_classroom(classroom_id)
        assignment = classroom.get_assignment(assignment_id)
        if not assignment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found.")
        return assignment

    # -------- Submissions --------
    def submit(
        self,
        classroom_id: str,
        assignment_id: str,
        student_id: str,
        file_name: str,
        file_data: str,
        mime_type: str = "image/jpeg",
        page_count: int = 1,
    ) -> Submission:
        """Store a student's submission, replacing any earlier one for the same assignment."""
        assignment = self.get_assignment(classroom_id, assignment_id)

        previous = assignment.get_submission_for(student_id)
        if previous is not None:
            logger.info(f"Replacing submission {previous.id} of student {student_id}")
            assignment.submissions.remove(previous)

        submission = Submission(
            student_id=student_id,
            file_name=file_name,
            file_data=file_data,
            mime_type=mime_type,
            page_count=page_count,
            evaluation=None,
            is_graded=False,
            grading_status=GradingStatus.idle,
        )
        try:
            # Delete the previous row before inserting so the unique constraint holds
            self.db.flush()
            assignment.submissions.append(submission)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to replace submission: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to save submission. Please try again."
            )
        self._commit("save submission")
        self.db.refresh(submission)
        return submission

    def get_submission(self, classroom_id: str, assignment_id: str, submission_id: str) -> Submission:
        assignment = self.get_assignment(classroom_id, assignment_id)
        for submission in assignment.submissions:
            if submission.id == submission_id:
                return submission
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found.")

    def _ensure_editable(self, submission: Submission) -> None:
        if submission.is_graded:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Submission has already been graded"
            )
        if submission.is_grading:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="AI grading is in progress for this submission"
            )

    def load_draft(self, submission: Submission) -> Optional[GradingDocument]:
        return submission.get_draft()

    # -------- Grading status --------
    def begin_grading(self, submission: Submission) -> str:
        """Mark a grading call as in flight and return its attempt token.

        Edits are refused until the call settles or is cancelled.
        """
        self._ensure_editable(submission)
        attempt = str(uuid.uuid4())
        submission.grading_status = GradingStatus.processing
        submission.grading_attempt = attempt
        self._commit("start grading")
        return attempt

    def _is_current_attempt(self, submission: Submission, attempt: str) -> bool:
        self.db.refresh(submission)
        return submission.grading_status == GradingStatus.processing and submission.grading_attempt == attempt

    def complete_grading(self, submission: Submission, document: GradingDocument, attempt: str) -> bool:
        """Store a producer result as the draft if its call is still the current one."""
        if not self._is_current_attempt(submission, attempt):
            logger.info(f"Discarding grading result for submission {submission.id}: call was cancelled")
            return False
        submission.set_draft(document)
        submission.grading_status = GradingStatus.completed
        submission.grading_attempt = None
        self._commit("store grading result")
        return True

    def fail_grading(self, submission: Submission, attempt: str) -> None:
        if self._is_current_attempt(submission, attempt):
            submission.grading_status = GradingStatus.failed
            submission.grading_attempt = None
            self._commit("record grading failure")

    def cancel_grading(self, submission: Submission) -> Submission:
        """Abandon an in-flight grading call; its result will be discarded."""
        if submission.is_grading:
            submission.grading_status = GradingStatus.idle
            submission.grading_attempt = None
            self._commit("cancel grading")
            logger.info(f"Cancelled grading for submission {submission.id}")
        return submission

    # -------- Editing & publishing --------
    def apply_edits(self, submission: Submission, operations: Iterable) -> GradingDocument:
        """Apply a batch of edit operations to the draft, all or nothing."""
        self._ensure_editable(submission)
        editor = GradingEditor(submission.get_draft(), default_max_score=self.default_max_score)
        try:
            document = editor.apply_all(operations)
        except InvalidEditError as e:
            logger.warning(f"Rejected edit on submission {submission.id}: {e}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        submission.set_draft(document)
        self._commit("save draft")
        return document

    def publish(self, submission: Submission, document: Optional[GradingDocument] = None) -> Submission:
        """Persist the final document (the draft unless one is given) and release it to the student."""
        self._ensure_editable(submission)
        if document is None:
            document = submission.get_draft()
        if document is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="There is no evaluation to publish"
            )

        is_valid, message = document.validate_scores()
        if not is_valid:
            logger.warning(f"Publishing submission {submission.id} with score issues: {message}")
        if document.is_overridden:
            logger.info(
                f"Publishing submission {submission.id} with overall score {document.overall_score} "
                f"overriding the derived {document.derived_score}"
            )

        submission.set_draft(document)
        submission.evaluation = document.to_wire()
        submission.is_graded = True
        submission.graded_at = datetime.now(UTC)
        self._commit("publish grade")
        self.db.refresh(submission)
        logger.info(f"Published grade {document.overall_score} for submission {submission.id}")
        return submission

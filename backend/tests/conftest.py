"""Test configuration and fixtures."""

import base64
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gradebook.database import Base, get_db
from gradebook.grading import (
    BilingualText,
    BoundingBox,
    ErrorRecord,
    ErrorType,
    GradingDocument,
    MalformedProducerResponse,
    ProblemBreakdown,
    ProducerUnavailable,
)


# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

# Stored and forwarded as-is; never decoded by the gateway
SAMPLE_IMAGE_BASE64 = base64.b64encode(b"\xff\xd8\xff\xe0 stitched homework pages").decode("utf-8")


def make_problem(score, max_score, errors=None, title="Question"):
    return ProblemBreakdown(
        problem_description=BilingualText(en=title, he="שאלה"),
        score=score,
        max_score=max_score,
        feedback=BilingualText(en="Good work.", he="עבודה טובה."),
        teacher_recommendation=BilingualText(en="Review signs.", he="לחזור על סימנים."),
        errors=errors or [],
    )


def make_error(deduction=2, error_type=ErrorType.minor_slip):
    return ErrorRecord(
        error_type=error_type,
        deduction=deduction,
        explanation=BilingualText(en="5 * 8 was written as 35.", he="5 * 8 נכתב כ-35."),
        hint=BilingualText(en="Check multiplication.", he="בדוק את הכפל."),
        bounding_box=BoundingBox(x=0.1, y=0.2, width=0.3, height=0.05),
    )


class FakeProducer:
    """Stands in for GradingProducer; returns a fixed document or raises."""

    def __init__(self, document=None, error=None):
        self.document = document
        self.error = error
        self.calls = []

    async def grade(self, image_base64, mime_type="image/jpeg"):
        self.calls.append((image_base64, mime_type))
        if self.error is not None:
            raise self.error
        return self.document


@pytest.fixture(scope="session")
def engine():
    """Create test database engine."""
    # Register models on Base.metadata
    import gradebook.models  # noqa: F401

    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture(scope="function")
def db_session(engine):
    """Create test database session inside a transaction that is rolled back afterwards."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False)

    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def sample_document():
    """A two-problem document: 20/25 and 25/25, overall 90."""
    return GradingDocument(
        overall_score=90,
        problem_breakdown=[
            make_problem(20, 25, errors=[make_error(2), make_error(3, ErrorType.procedural_error)], title="Question 1"),
            make_problem(25, 25, title="Question 2"),
        ],
    )


@pytest.fixture
def registry(db_session):
    from gradebook.services.registry import ClassroomRegistry
    return ClassroomRegistry(db_session)


@pytest.fixture
def sample_classroom(db_session):
    """Create a sample classroom for testing."""
    from gradebook.models import Classroom
    classroom = Classroom(name="Algebra 10B", teacher_id="teacher-01", secret_code="ABC123")
    db_session.add(classroom)
    db_session.commit()
    db_session.refresh(classroom)
    return classroom


@pytest.fixture
def sample_assignment(db_session, sample_classroom):
    """Create a sample assignment for testing."""
    from gradebook.models import Assignment
    assignment = Assignment(title="Linear equations", classroom_id=sample_classroom.id)
    db_session.add(assignment)
    db_session.commit()
    db_session.refresh(assignment)
    return assignment


@pytest.fixture
def sample_submission(db_session, sample_assignment):
    """Create a sample submission for testing."""
    from gradebook.models import Submission
    submission = Submission(
        assignment_id=sample_assignment.id,
        student_id="student-01",
        file_name="homework.pdf",
        file_data=SAMPLE_IMAGE_BASE64,
        page_count=2,
    )
    db_session.add(submission)
    db_session.commit()
    db_session.refresh(submission)
    return submission


@pytest.fixture
def drafted_submission(db_session, sample_submission, sample_document):
    """A submission whose AI grading finished and left a draft."""
    from gradebook.models import GradingStatus
    sample_submission.set_draft(sample_document)
    sample_submission.grading_status = GradingStatus.completed
    db_session.commit()
    db_session.refresh(sample_submission)
    return sample_submission


@pytest.fixture
def fake_producer(sample_document):
    return FakeProducer(document=sample_document)


@pytest.fixture
def unavailable_producer():
    return FakeProducer(error=ProducerUnavailable("The AI grading service is temporarily unavailable. Please try again."))


@pytest.fixture
def malformed_producer():
    return FakeProducer(error=MalformedProducerResponse("The grading service did not return valid JSON"))


@pytest.fixture
def client(db_session, fake_producer, tmp_path):
    """TestClient bound to the test session, a fake producer and a temp upload dir."""
    from gradebook.main import app
    from gradebook.dependencies import get_grading_producer, get_homework_processor
    from homework_processor.service import HomeworkProcessor

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_grading_producer] = lambda: fake_producer
    app.dependency_overrides[get_homework_processor] = lambda: HomeworkProcessor(
        upload_dir=str(tmp_path), max_file_size=1024 * 1024
    )

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()

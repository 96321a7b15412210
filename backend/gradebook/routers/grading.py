"""AI grading, draft editing and publishing endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..dependencies import get_grading_producer, get_registry
from ..grading import EditBatch, GradingDocument, MalformedProducerResponse, ProducerError
from ..schemas import EvaluateRequest, SubmissionResponse
from ..services.producer import GradingProducer
from ..services.registry import ClassroomRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Grading"])

SUBMISSION_PATH = "/classrooms/{classroom_id}/assignments/{assignment_id}/submissions/{submission_id}"


def producer_http_error(error: ProducerError) -> HTTPException:
    """Translate a producer failure into the gateway's HTTP error."""
    if isinstance(error, MalformedProducerResponse):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=error.message)
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=error.message)


@router.post("/evaluate", response_model=GradingDocument)
async def evaluate(
    payload: EvaluateRequest,
    producer: GradingProducer = Depends(get_grading_producer)
):
    """Grade an image without storing anything."""
    try:
        return await producer.grade(payload.file_data)
    except ProducerError as e:
        logger.error(f"Grading failed: {e.message} ({e.details})")
        raise producer_http_error(e)


@router.post(SUBMISSION_PATH + "/evaluate", response_model=GradingDocument)
async def evaluate_submission(
    classroom_id: str,
    assignment_id: str,
    submission_id: str,
    registry: ClassroomRegistry = Depends(get_registry),
    producer: GradingProducer = Depends(get_grading_producer)
):
    """Run AI grading on a submission; the result becomes its draft."""
    submission = registry.get_submission(classroom_id, assignment_id, submission_id)
    attempt = registry.begin_grading(submission)

    try:
        document = await producer.grade(submission.file_data, submission.mime_type or "image/jpeg")
    except ProducerError as e:
        logger.error(f"Grading failed for submission {submission_id}: {e.message} ({e.details})")
        registry.fail_grading(submission, attempt)
        raise producer_http_error(e)
    except Exception:
        registry.fail_grading(submission, attempt)
        raise

    if not registry.complete_grading(submission, document, attempt):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Grading was cancelled for this submission"
        )
    return document


@router.delete(SUBMISSION_PATH + "/evaluate", response_model=SubmissionResponse)
async def cancel_evaluation(
    classroom_id: str,
    assignment_id: str,
    submission_id: str,
    registry: ClassroomRegistry = Depends(get_registry)
):
    """Abandon an in-flight grading call."""
    submission = registry.get_submission(classroom_id, assignment_id, submission_id)
    return registry.cancel_grading(submission)


@router.get(SUBMISSION_PATH + "/draft", response_model=GradingDocument)
async def get_draft(
    classroom_id: str,
    assignment_id: str,
    submission_id: str,
    registry: ClassroomRegistry = Depends(get_registry)
):
    submission = registry.get_submission(classroom_id, assignment_id, submission_id)
    if not submission.has_draft:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No draft evaluation for this submission"
        )
    return registry.load_draft(submission)


@router.patch(SUBMISSION_PATH + "/draft", response_model=GradingDocument)
async def edit_draft(
    classroom_id: str,
    assignment_id: str,
    submission_id: str,
    batch: EditBatch,
    registry: ClassroomRegistry = Depends(get_registry)
):
    """Apply a batch of edit operations to the draft, all or nothing."""
    submission = registry.get_submission(classroom_id, assignment_id, submission_id)
    return registry.apply_edits(submission, batch.operations)


@router.post(SUBMISSION_PATH + "/publish", response_model=SubmissionResponse)
async def publish_draft(
    classroom_id: str,
    assignment_id: str,
    submission_id: str,
    registry: ClassroomRegistry = Depends(get_registry)
):
    """Release the draft to the student."""
    submission = registry.get_submission(classroom_id, assignment_id, submission_id)
    return registry.publish(submission)


@router.get(SUBMISSION_PATH + "/evaluation", response_model=GradingDocument)
async def get_evaluation(
    classroom_id: str,
    assignment_id: str,
    submission_id: str,
    registry: ClassroomRegistry = Depends(get_registry)
):
    """Student view of the published evaluation."""
    submission = registry.get_submission(classroom_id, assignment_id, submission_id)
    document = submission.get_evaluation() if submission.is_graded else None
    if document is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="This submission has not been graded yet"
        )
    return document

"""Classroom, assignment and submission endpoints."""

import io
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from homework_processor.adapters import ContentProcessingError, UnsupportedFileTypeError
from homework_processor.service import HomeworkProcessor

from ..dependencies import get_homework_processor, get_registry
from ..schemas import (
    AssignmentCreate,
    AssignmentResponse,
    ClassroomCreate,
    ClassroomJoin,
    ClassroomResponse,
    EvaluationPublish,
    SubmissionCreate,
    SubmissionResponse,
)
from ..services.registry import ClassroomRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/classrooms", tags=["Classrooms"])


@router.get("", response_model=List[ClassroomResponse])
async def list_classrooms(
    student_id: Optional[str] = None,
    registry: ClassroomRegistry = Depends(get_registry)
):
    """List all classrooms, or only the ones a student has joined."""
    return registry.list_classrooms(student_id)


@router.post("", response_model=ClassroomResponse, status_code=status.HTTP_201_CREATED)
async def create_classroom(
    payload: ClassroomCreate,
    registry: ClassroomRegistry = Depends(get_registry)
):
    return registry.create_classroom(payload.name)


@router.post("/join", response_model=ClassroomResponse)
async def join_classroom(
    payload: ClassroomJoin,
    registry: ClassroomRegistry = Depends(get_registry)
):
    """Join a classroom with its secret code."""
    return registry.join_classroom(payload.secret_code, payload.student_id)


@router.post(
    "/{classroom_id}/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_assignment(
    classroom_id: str,
    payload: AssignmentCreate,
    registry: ClassroomRegistry = Depends(get_registry)
):
    return registry.create_assignment(classroom_id, payload.title)


@router.post(
    "/{classroom_id}/assignments/{assignment_id}/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_submission(
    classroom_id: str,
    assignment_id: str,
    payload: SubmissionCreate,
    registry: ClassroomRegistry = Depends(get_registry)
):
    """Submit homework that the client already rendered to a single JPEG."""
    return registry.submit(
        classroom_id,
        assignment_id,
        student_id=payload.student_id,
        file_name=payload.file_name,
        file_data=payload.file_data,
        mime_type=payload.mime_type,
        page_count=payload.page_count,
    )


@router.post(
    "/{classroom_id}/assignments/{assignment_id}/submissions/upload",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED
)
async def upload_submission(
    classroom_id: str,
    assignment_id: str,
    student_id: str = Form(...),
    file: UploadFile = File(...),
    registry: ClassroomRegistry = Depends(get_registry),
    processor: HomeworkProcessor = Depends(get_homework_processor)
):
    """Submit a PDF or image; it is rendered to a single JPEG before it is stored."""
    # Resolve the assignment first so an unknown id does not cost a conversion
    registry.get_assignment(classroom_id, assignment_id)

    try:
        contents = await file.read()
        if len(contents) > processor.max_file_size:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File exceeds the maximum size of {processor.max_file_size} bytes"
            )
        result = await processor.process_file(
            file=io.BytesIO(contents),
            filename=file.filename,
            mime_type=file.content_type,
        )
    except UnsupportedFileTypeError as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e))
    except ContentProcessingError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    finally:
        await file.close()

    return registry.submit(
        classroom_id,
        assignment_id,
        student_id=student_id,
        file_name=file.filename,
        file_data=result["file_data"],
        mime_type=result["mime_type"],
        page_count=result["page_count"],
    )


@router.put(
    "/{classroom_id}/assignments/{assignment_id}/submissions/{submission_id}",
    response_model=SubmissionResponse
)
async def publish_evaluation(
    classroom_id: str,
    assignment_id: str,
    submission_id: str,
    payload: EvaluationPublish,
    registry: ClassroomRegistry = Depends(get_registry)
):
    """Publish a teacher-edited evaluation exactly as sent."""
    submission = registry.get_submission(classroom_id, assignment_id, submission_id)
    return registry.publish(submission, payload.evaluation)

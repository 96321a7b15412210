"""Pydantic request/response schemas for the API gateway."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .grading import GradingDocument
from .models import GradingStatus


class ClassroomCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ClassroomJoin(BaseModel):
    secret_code: str = Field(..., min_length=1)
    student_id: str = Field(..., min_length=1)


class AssignmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)


class SubmissionCreate(BaseModel):
    student_id: str = Field(..., min_length=1)
    file_data: str = Field(..., min_length=1, description="Base64 encoded JPEG of the stitched pages")
    file_name: str
    mime_type: str = "image/jpeg"
    page_count: int = 1


class EvaluationPublish(BaseModel):
    evaluation: GradingDocument


class EvaluateRequest(BaseModel):
    file_data: str = Field(..., min_length=1)


class SubmissionResponse(BaseModel):
    id: str
    assignment_id: str
    student_id: str
    file_name: Optional[str]
    mime_type: Optional[str]
    file_data: str
    page_count: Optional[int]
    submitted_at: datetime
    is_graded: bool
    grading_status: GradingStatus
    has_draft: bool = False
    graded_at: Optional[datetime] = None
    evaluation: Optional[GradingDocument] = None

    model_config = ConfigDict(from_attributes=True)


class AssignmentResponse(BaseModel):
    id: str
    classroom_id: str
    title: str
    created_at: datetime
    submission_count: int = 0
    graded_count: int = 0
    submissions: List[SubmissionResponse] = []

    model_config = ConfigDict(from_attributes=True)


class ClassroomResponse(BaseModel):
    id: str
    name: str
    teacher_id: str
    secret_code: str
    created_at: datetime
    student_ids: List[str] = []
    assignments: List[AssignmentResponse] = []

    model_config = ConfigDict(from_attributes=True)

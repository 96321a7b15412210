"""Typed edit operations accepted by the grading editor.

Each operation is a small pydantic model tagged by ``op`` so a batch can be
sent over HTTP as a list and validated in one pass.
"""

from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .document import ErrorRecord, Language, ProblemBreakdown

BILINGUAL_PROBLEM_FIELDS = ("problem_description", "feedback", "teacher_recommendation")
NUMERIC_PROBLEM_FIELDS = ("score", "max_score")

BILINGUAL_ERROR_FIELDS = ("explanation", "hint")

ProblemField = Literal["problem_description", "feedback", "teacher_recommendation", "score", "max_score"]
ErrorField = Literal["explanation", "hint", "error_type", "deduction", "boundingBox", "bounding_box"]


class SetProblemField(BaseModel):
    op: Literal["set_problem_field"] = "set_problem_field"
    problem_index: int
    field: ProblemField
    value: Any
    lang: Optional[Language] = None


class SetErrorField(BaseModel):
    op: Literal["set_error_field"] = "set_error_field"
    problem_index: int
    error_index: int
    field: ErrorField
    value: Any
    lang: Optional[Language] = None


class AddError(BaseModel):
    op: Literal["add_error"] = "add_error"
    problem_index: int
    error: Optional[ErrorRecord] = None


class RemoveError(BaseModel):
    op: Literal["remove_error"] = "remove_error"
    problem_index: int
    error_index: int


class AddProblem(BaseModel):
    op: Literal["add_problem"] = "add_problem"
    problem: Optional[ProblemBreakdown] = None


class SetOverallScore(BaseModel):
    op: Literal["set_overall_score"] = "set_overall_score"
    value: int


EditOperation = Annotated[
    Union[SetProblemField, SetErrorField, AddError, RemoveError, AddProblem, SetOverallScore],
    Field(discriminator="op"),
]


class EditBatch(BaseModel):
    """Operations applied together; either all succeed or none do."""
    operations: List[EditOperation] = Field(default_factory=list)

"""Grading document model and editor."""

from .document import (
    BilingualText,
    BoundingBox,
    ErrorRecord,
    ErrorType,
    GradingDocument,
    Language,
    ProblemBreakdown,
    coerce_points,
    recompute_overall_score,
)
from .editor import DEFAULT_MAX_SCORE, GradingEditor, default_error
from .exceptions import (
    GradingError,
    InvalidEditError,
    InvalidIndexError,
    MalformedProducerResponse,
    ProducerError,
    ProducerUnavailable,
)
from .operations import (
    AddError,
    AddProblem,
    EditBatch,
    EditOperation,
    RemoveError,
    SetErrorField,
    SetOverallScore,
    SetProblemField,
)

__all__ = [
    "BilingualText",
    "BoundingBox",
    "ErrorRecord",
    "ErrorType",
    "GradingDocument",
    "Language",
    "ProblemBreakdown",
    "coerce_points",
    "recompute_overall_score",
    "DEFAULT_MAX_SCORE",
    "GradingEditor",
    "default_error",
    "GradingError",
    "InvalidEditError",
    "InvalidIndexError",
    "MalformedProducerResponse",
    "ProducerError",
    "ProducerUnavailable",
    "AddError",
    "AddProblem",
    "EditBatch",
    "EditOperation",
    "RemoveError",
    "SetErrorField",
    "SetOverallScore",
    "SetProblemField",
]

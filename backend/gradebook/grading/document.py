"""Grading document model.

The document is the bilingual, per-problem grade of one submission:

    GradingDocument
        overall_score           derived from the problems (or a teacher override)
        problem_breakdown[]     ProblemBreakdown
            errors[]            ErrorRecord

Field names and types mirror the JSON exchanged with the grading service and
stored on submissions, so ``to_wire()``/``from_wire()`` are the only
serialization entry points. ``ErrorRecord.bounding_box`` travels as
``boundingBox``.
"""

import enum
import math
from typing import Any, List, Mapping, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class Language(str, enum.Enum):
    """Display languages carried by every bilingual field."""
    en = "en"
    he = "he"


class ErrorType(str, enum.Enum):
    """Severity category of a mistake."""
    minor_slip = "minor_slip"
    procedural_error = "procedural_error"
    conceptual_error = "conceptual_error"


class BilingualText(BaseModel):
    """A display string in English and Hebrew. Both languages are always present."""
    en: str
    he: str

    def get(self, lang: Union[Language, str]) -> str:
        return getattr(self, Language(lang).value)

    def with_text(self, lang: Union[Language, str], text: str) -> "BilingualText":
        """Return a copy with one language slot replaced."""
        return self.model_copy(update={Language(lang).value: text})

    @classmethod
    def empty(cls) -> "BilingualText":
        return cls(en="", he="")


class BoundingBox(BaseModel):
    """Normalized region of the submission image, origin top-left.

    Values are fractions of the image width/height and are expected in [0, 1];
    they are not clamped here.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def is_normalized(self) -> bool:
        return all(0.0 <= v <= 1.0 for v in (self.x, self.y, self.width, self.height))


class ErrorRecord(BaseModel):
    """One mistake found in a problem."""
    model_config = ConfigDict(populate_by_name=True)

    error_type: ErrorType
    deduction: int
    explanation: BilingualText
    hint: BilingualText
    bounding_box: BoundingBox = Field(alias="boundingBox")


class ProblemBreakdown(BaseModel):
    """Score and feedback for a single problem."""
    problem_description: BilingualText
    score: int
    max_score: int
    feedback: BilingualText
    teacher_recommendation: BilingualText
    errors: List[ErrorRecord] = Field(default_factory=list)


class GradingDocument(BaseModel):
    """Full grade of one submission."""
    overall_score: int = 0
    problem_breakdown: List[ProblemBreakdown] = Field(default_factory=list)

    def __repr__(self):
        return f"<GradingDocument(overall_score={self.overall_score}, problems={len(self.problem_breakdown)})>"

    @property
    def derived_score(self) -> int:
        """Overall score implied by the problems, ignoring any override."""
        return recompute_overall_score(self.problem_breakdown)

    @property
    def is_overridden(self) -> bool:
        return self.overall_score != self.derived_score

    def to_wire(self) -> dict:
        """Serialize with the external field names (``boundingBox``)."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "GradingDocument":
        """Parse a stored or produced document; raises pydantic.ValidationError on bad shape."""
        return cls.model_validate(data)

    def validate_scores(self) -> Tuple[bool, str]:
        """Check the ranges the editor tolerates while a teacher is still editing."""
        if not 0 <= self.overall_score <= 100:
            return False, f"Overall score {self.overall_score} must be between 0 and 100"

        for i, problem in enumerate(self.problem_breakdown):
            if problem.max_score < 0:
                return False, f"Problem {i} max_score must not be negative"
            if not 0 <= problem.score <= problem.max_score:
                return False, f"Problem {i} score {problem.score} must be between 0 and {problem.max_score}"
            for j, error in enumerate(problem.errors):
                if not error.bounding_box.is_normalized:
                    return False, f"Problem {i} error {j} bounding box must be within [0, 1]"

        return True, "Valid scores"


def _as_number(value: Any) -> float:
    """Numeric value of a score field; anything unusable counts as 0."""
    if isinstance(value, bool):
        return float(value)
    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            number = float(value.strip())
        else:
            return 0.0
    except (ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def coerce_points(value: Any) -> int:
    """Integer points from raw numeric input (truncates toward zero, junk becomes 0)."""
    return int(_as_number(value))


def _field(problem: Union[ProblemBreakdown, Mapping[str, Any]], name: str) -> Any:
    if isinstance(problem, Mapping):
        return problem.get(name)
    return getattr(problem, name, None)


def recompute_overall_score(problems: Sequence[Union[ProblemBreakdown, Mapping[str, Any]]]) -> int:
    """Overall percentage from per-problem scores.

    ``round(100 * sum(score) / sum(max_score))`` with halves rounded up, or 0
    when the total max score is not positive. Non-numeric or missing values
    count as 0.
    """
    total_score = sum(_as_number(_field(p, "score")) for p in problems)
    total_max_score = sum(_as_number(_field(p, "max_score")) for p in problems)
    if total_max_score <= 0:
        return 0
    percentage = 100 * total_score / total_max_score
    # Finite inputs can still overflow once summed
    if not math.isfinite(percentage):
        return 0
    return int(math.floor(percentage + 0.5))

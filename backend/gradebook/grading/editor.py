"""Grading editor.

Applies field-scoped edits to a GradingDocument while keeping
``overall_score`` consistent with the problems:

- ``score``/``max_score`` edits and ``add_problem`` re-derive the overall score;
- text edits and error edits leave it alone;
- ``set_overall_score`` overrides it until the next re-derivation.

Every operation checks its indices and value before touching the document, so
a rejected operation leaves the document exactly as it was.
"""

import logging
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

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
from .exceptions import InvalidEditError, InvalidIndexError
from .operations import (
    AddError,
    AddProblem,
    BILINGUAL_ERROR_FIELDS,
    BILINGUAL_PROBLEM_FIELDS,
    NUMERIC_PROBLEM_FIELDS,
    RemoveError,
    SetErrorField,
    SetOverallScore,
    SetProblemField,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_SCORE = 25


def default_error() -> ErrorRecord:
    """Placeholder error appended when a teacher adds one by hand."""
    return ErrorRecord(
        error_type=ErrorType.minor_slip,
        deduction=1,
        explanation=BilingualText(en="New error explanation.", he="הסבר שגיאה חדש."),
        hint=BilingualText(en="New hint.", he="רמז חדש."),
        bounding_box=BoundingBox(x=0.0, y=0.0, width=0.1, height=0.1),
    )


class GradingEditor:
    """Controlled mutation of one grading document.

    Args:
        document: Document to edit. The editor works on its own deep copy;
            ``None`` starts from an empty document.
        default_max_score: ``max_score`` given to problems added by ``add_problem``.
        error_factory: Builds the error appended by ``add_error``.
    """

    def __init__(
        self,
        document: Optional[GradingDocument] = None,
        default_max_score: int = DEFAULT_MAX_SCORE,
        error_factory: Callable[[], ErrorRecord] = default_error,
    ):
        self.document = document.model_copy(deep=True) if document is not None else GradingDocument()
        self.default_max_score = default_max_score
        self.error_factory = error_factory

    def __repr__(self):
        return f"<GradingEditor(document={self.document!r})>"

    # -------- Lookups --------
    @staticmethod
    def _check_index(kind: str, index: Any, length: int) -> int:
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < length:
            raise InvalidIndexError(kind, index)
        return index

    def _problem(self, problem_index: int) -> ProblemBreakdown:
        problems = self.document.problem_breakdown
        return problems[self._check_index("problem", problem_index, len(problems))]

    def _error(self, problem_index: int, error_index: int) -> ErrorRecord:
        errors = self._problem(problem_index).errors
        return errors[self._check_index("error", error_index, len(errors))]

    @staticmethod
    def _bilingual_value(current: BilingualText, field: str, value: Any, lang: Optional[Union[Language, str]]) -> BilingualText:
        if lang is None:
            try:
                return BilingualText.model_validate(value)
            except ValidationError as e:
                raise InvalidEditError(f"{field} needs both 'en' and 'he' text when no language is given") from e
        try:
            lang = Language(lang)
        except ValueError as e:
            raise InvalidEditError(f"Unknown language: {lang}") from e
        if not isinstance(value, str):
            raise InvalidEditError(f"{field}.{lang.value} must be a string")
        return current.with_text(lang, value)

    # -------- Operations --------
    def set_problem_field(self, problem_index: int, field: str, value: Any, lang: Optional[Union[Language, str]] = None) -> GradingDocument:
        """Replace one field (or one language of a bilingual field) of a problem."""
        problem = self._problem(problem_index)

        if field in BILINGUAL_PROBLEM_FIELDS:
            new_value = self._bilingual_value(getattr(problem, field), field, value, lang)
        elif field in NUMERIC_PROBLEM_FIELDS:
            if lang is not None:
                raise InvalidEditError(f"{field} is not a bilingual field")
            new_value = coerce_points(value)
        else:
            raise InvalidEditError(f"Unknown problem field: {field}")

        if field in NUMERIC_PROBLEM_FIELDS:
            # Derive the new total before touching the document
            problems = list(self.document.problem_breakdown)
            problems[problem_index] = problem.model_copy(update={field: new_value})
            overall_score = recompute_overall_score(problems)
            setattr(problem, field, new_value)
            self.document.overall_score = overall_score
        else:
            setattr(problem, field, new_value)
        return self.document

    def set_error_field(
        self,
        problem_index: int,
        error_index: int,
        field: str,
        value: Any,
        lang: Optional[Union[Language, str]] = None,
    ) -> GradingDocument:
        """Replace one field of one error; never touches the overall score."""
        error = self._error(problem_index, error_index)

        if field in BILINGUAL_ERROR_FIELDS:
            setattr(error, field, self._bilingual_value(getattr(error, field), field, value, lang))
            return self.document

        if lang is not None:
            raise InvalidEditError(f"{field} is not a bilingual field")

        if field == "error_type":
            try:
                error.error_type = ErrorType(value)
            except ValueError as e:
                raise InvalidEditError(f"Unknown error type: {value}") from e
        elif field == "deduction":
            error.deduction = coerce_points(value)
        elif field in ("boundingBox", "bounding_box"):
            try:
                error.bounding_box = BoundingBox.model_validate(value)
            except ValidationError as e:
                raise InvalidEditError("boundingBox needs numeric x, y, width and height") from e
        else:
            raise InvalidEditError(f"Unknown error field: {field}")
        return self.document

    def add_error(self, problem_index: int, error: Optional[Union[ErrorRecord, Mapping[str, Any]]] = None) -> GradingDocument:
        """Append an error (the editor's placeholder unless one is given)."""
        problem = self._problem(problem_index)
        if error is None:
            new_error = self.error_factory()
        else:
            try:
                new_error = ErrorRecord.model_validate(error).model_copy(deep=True)
            except ValidationError as e:
                raise InvalidEditError("Invalid error record") from e
        problem.errors.append(new_error)
        return self.document

    def remove_error(self, problem_index: int, error_index: int) -> GradingDocument:
        """Remove one error, keeping the order of the others."""
        errors = self._problem(problem_index).errors
        del errors[self._check_index("error", error_index, len(errors))]
        return self.document

    def new_problem(self) -> ProblemBreakdown:
        return ProblemBreakdown(
            problem_description=BilingualText.empty(),
            score=0,
            max_score=self.default_max_score,
            feedback=BilingualText.empty(),
            teacher_recommendation=BilingualText.empty(),
            errors=[],
        )

    def add_problem(self, problem: Optional[Union[ProblemBreakdown, Mapping[str, Any]]] = None) -> GradingDocument:
        """Append a problem and re-derive the overall score."""
        if problem is None:
            new_problem = self.new_problem()
        else:
            try:
                new_problem = ProblemBreakdown.model_validate(problem).model_copy(deep=True)
            except ValidationError as e:
                raise InvalidEditError("Invalid problem breakdown") from e
        overall_score = recompute_overall_score([*self.document.problem_breakdown, new_problem])
        self.document.problem_breakdown.append(new_problem)
        self.document.overall_score = overall_score
        return self.document

    def set_overall_score(self, new_score: int) -> GradingDocument:
        """Override the overall score with the teacher's own judgment (0-100)."""
        if isinstance(new_score, bool) or not isinstance(new_score, int):
            raise InvalidEditError(f"Overall score must be an integer, got {new_score!r}")
        if not 0 <= new_score <= 100:
            raise InvalidEditError(f"Overall score {new_score} must be between 0 and 100")
        self.document.overall_score = new_score
        return self.document

    # -------- Typed operations --------
    def apply(self, operation) -> GradingDocument:
        """Apply one typed edit operation."""
        if isinstance(operation, SetProblemField):
            return self.set_problem_field(operation.problem_index, operation.field, operation.value, operation.lang)
        if isinstance(operation, SetErrorField):
            return self.set_error_field(
                operation.problem_index, operation.error_index, operation.field, operation.value, operation.lang
            )
        if isinstance(operation, AddError):
            return self.add_error(operation.problem_index, operation.error)
        if isinstance(operation, RemoveError):
            return self.remove_error(operation.problem_index, operation.error_index)
        if isinstance(operation, AddProblem):
            return self.add_problem(operation.problem)
        if isinstance(operation, SetOverallScore):
            return self.set_overall_score(operation.value)
        raise InvalidEditError(f"Unsupported edit operation: {type(operation).__name__}")

    def apply_all(self, operations: Iterable) -> GradingDocument:
        """Apply a batch of operations; on any failure nothing is applied."""
        scratch = GradingEditor(self.document, self.default_max_score, self.error_factory)
        count = 0
        for operation in operations:
            scratch.apply(operation)
            count += 1
        self.document = scratch.document
        logger.debug(f"Applied {count} edit operation(s); overall score is {self.document.overall_score}")
        return self.document

"""API routers."""

from .classrooms import router as classrooms_router
from .grading import router as grading_router

__all__ = ["classrooms_router", "grading_router"]

"""FastAPI dependencies shared by the routers."""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from homework_processor.service import HomeworkProcessor

from .config import DEFAULT_MAX_SCORE, DEFAULT_TEACHER_ID, MAX_UPLOAD_SIZE, UPLOAD_DIR
from .database import get_db
from .services.producer import GradingProducer
from .services.registry import ClassroomRegistry


def get_registry(db: Session = Depends(get_db)) -> ClassroomRegistry:
    """Dependency to get an instance of ClassroomRegistry."""
    return ClassroomRegistry(db, teacher_id=DEFAULT_TEACHER_ID, default_max_score=DEFAULT_MAX_SCORE)


@lru_cache()
def get_grading_producer() -> GradingProducer:
    """Shared grading producer; the OpenAI client is created on first use."""
    return GradingProducer()


@lru_cache()
def get_homework_processor() -> HomeworkProcessor:
    return HomeworkProcessor(upload_dir=UPLOAD_DIR, max_file_size=MAX_UPLOAD_SIZE)

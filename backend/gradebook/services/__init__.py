"""Services behind the API gateway routers."""

from .producer import GraderConfig, GradingProducer
from .registry import ClassroomRegistry

__all__ = ["ClassroomRegistry", "GraderConfig", "GradingProducer"]

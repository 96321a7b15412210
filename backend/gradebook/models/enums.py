"""Shared enums for models and schemas."""
import enum


class GradingStatus(enum.Enum):
    """State of the external grading call for a submission."""
    idle = "idle"
    processing = "processing"
    completed = "completed"
    failed = "failed"

"""Configuration for the Homework Grader API gateway."""

import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./gradebook.db")
SQL_DEBUG = os.getenv("SQL_DEBUG", "false").lower() == "true"

# HTTP
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", str(50 * 1024 * 1024)))
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")

# Identity stand-in until real accounts exist
DEFAULT_TEACHER_ID = os.getenv("DEFAULT_TEACHER_ID", "teacher-01")

# Grading
DEFAULT_MAX_SCORE = int(os.getenv("DEFAULT_MAX_SCORE", "25"))
SECRET_CODE_LENGTH = 6

# Grading service (OpenAI-compatible chat completions endpoint)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None
GRADER_MODEL_NAME = os.getenv("GRADER_MODEL_NAME", "gpt-4o")
GRADER_TEMPERATURE = float(os.getenv("GRADER_TEMPERATURE", "0.2"))
GRADER_MAX_TOKENS = int(os.getenv("GRADER_MAX_TOKENS", "8192"))
GRADER_TIMEOUT = float(os.getenv("GRADER_TIMEOUT", "120"))

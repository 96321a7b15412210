"""Homework processing service package.

Turns uploaded homework (PDF or image) into the single stitched JPEG the
grading service reads. Loads environment variables from a local .env file to
support local development and testing without external configuration.
"""

from pathlib import Path

from dotenv import load_dotenv


def _load_local_env():
    # Try homework_processor/.env first, then project root .env
    pkg_dir = Path(__file__).resolve().parent
    candidates = [
        pkg_dir / ".env",
        pkg_dir.parent / ".env",
    ]
    for p in candidates:
        if p.exists():
            load_dotenv(dotenv_path=p, override=False)


_load_local_env()

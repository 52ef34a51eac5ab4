"""Quiz-related constants shared across the core and server layers."""

from pathlib import Path

DEFAULT_TIME_LIMIT_SECONDS: int = 30
MAX_NICKNAME_LENGTH: int = 32
EVENT_KEEPALIVE_SECONDS: float = 15.0
EVENT_QUEUE_MAXSIZE: int = 256
DEFAULT_QUIZ_OWNER: str = "DEMO"
QUIZ_DATA_DIR: Path = Path(__file__).resolve().parent.parent / "data" / "quizzes"

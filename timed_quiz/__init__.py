"""
timed-quiz: a console quiz with one shared countdown for the whole run.
"""

__version__ = "0.1.0"

from .models import Question, QuizSettings, QuizResult, normalize_response
from .errors import (
    QuizError,
    QuizImportError,
    QuizStateError,
    ResponseReaderError,
    ConfigError,
)
from .response_reader import ResponseReader
from .quiz_engine import QuizEngine, QuizTimer, QuestionRunner, RunnerState
from .data_manager import DataManager
from .config_manager import ConfigManager

__all__ = [
    # Models
    "Question",
    "QuizSettings",
    "QuizResult",
    "normalize_response",
    # Errors
    "QuizError",
    "QuizImportError",
    "QuizStateError",
    "ResponseReaderError",
    "ConfigError",
    # Engine
    "ResponseReader",
    "QuizEngine",
    "QuizTimer",
    "QuestionRunner",
    "RunnerState",
    # Collaborators
    "DataManager",
    "ConfigManager",
]

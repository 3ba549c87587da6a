"""
Exception hierarchy for the timed quiz.
"""


class QuizError(Exception):
    """Base exception for quiz errors."""
    pass


class QuizImportError(QuizError):
    """Raised when a question source is unreadable or malformed."""
    pass


class QuizStateError(QuizError):
    """Raised when the engine is used out of order (e.g. played twice)."""
    pass


class ResponseReaderError(QuizError):
    """Raised when a read cannot be started."""
    pass


class ConfigError(QuizError):
    """Raised when a configuration file cannot be used."""
    pass

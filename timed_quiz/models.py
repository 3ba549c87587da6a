"""
Core data models for the timed quiz.
"""
from dataclasses import dataclass, field
from typing import List, Optional


def normalize_response(raw: str) -> str:
    """Strip trailing carriage-return and line-feed characters."""
    return raw.rstrip("\r\n")


@dataclass
class Question:
    """A single prompt/answer pair plus the answer state of one run."""
    text: str
    answer: str
    response: str = field(default="", init=False)
    was_asked: bool = field(default=False, init=False)
    is_correct: bool = field(default=False, init=False)

    def record_answer(self, raw: str) -> None:
        """
        Store the user's answer and score it.

        Matching is exact and case-sensitive; only trailing CR/LF is ignored.
        Callers must call this at most once per question per run.
        """
        self.response = normalize_response(raw)
        self.was_asked = True
        self.is_correct = self.response == self.answer

    def describe_if_wrong(self) -> Optional[str]:
        """Review line for an answered-but-wrong question, otherwise None."""
        if self.was_asked and not self.is_correct:
            return f" '{self.text}' is '{self.answer}'; you said '{self.response}'"
        return None


@dataclass
class QuizSettings:
    """Configuration settings for a quiz run."""
    quiz_file: str = "problems.csv"
    time_limit: int = 30
    shuffle: bool = False
    seed: Optional[int] = None
    max_outstanding_reads: Optional[int] = None
    log_level: str = "WARNING"
    log_directory: Optional[str] = None


@dataclass
class QuizResult:
    """Outcome of a finished run, as reported by QuizEngine.score()."""
    total: int
    asked: int
    answered: int
    correct: int
    timed_out: bool
    wrong: List[str] = field(default_factory=list)

    @property
    def full_marks(self) -> bool:
        return self.correct == self.total

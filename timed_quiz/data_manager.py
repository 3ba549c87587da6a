"""
Data manager for loading question sets from CSV and JSON files.

Loading is all-or-nothing: any unreadable file or malformed row raises
QuizImportError and no questions are returned.
"""
import csv
import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .errors import QuizImportError

QuestionPair = Tuple[str, str]


class DataManager:
    """Loads (prompt, answer) pairs from quiz files."""

    SUPPORTED_FORMATS = ("csv", "json")

    def __init__(self, encoding: str = "utf-8"):
        """
        Initialize DataManager.

        Args:
            encoding: Text encoding used to open quiz files
        """
        self.encoding = encoding
        self.logger = logging.getLogger(__name__)

    def load_questions(self, path: Union[str, Path], fmt: Optional[str] = None) -> List[QuestionPair]:
        """
        Load every question pair from a quiz file, in file order.

        Args:
            path: Path to the quiz file
            fmt: "csv" or "json"; inferred from the file extension when None

        Returns:
            List of (prompt, answer) tuples

        Raises:
            QuizImportError: If the file cannot be read or any row is malformed
        """
        path = Path(path)
        fmt = (fmt or self.detect_format(path)).lower()
        if fmt not in self.SUPPORTED_FORMATS:
            raise QuizImportError(f"Unsupported quiz format '{fmt}'")

        try:
            with open(path, 'r', encoding=self.encoding, newline='') as f:
                if fmt == "json":
                    pairs = self._parse_json(f.read())
                else:
                    pairs = self._parse_csv(f)
        except OSError as e:
            self.logger.error(f"Failed to read quiz file {path}: {e}")
            raise QuizImportError(f"Unable to open '{path}'\n(Error: {e})") from e
        except UnicodeDecodeError as e:
            self.logger.error(f"Quiz file {path} is not valid {self.encoding}: {e}")
            raise QuizImportError(f"Unable to decode '{path}': {e}") from e

        self.logger.info(f"Loaded {len(pairs)} questions from {path}")
        return pairs

    @staticmethod
    def detect_format(path: Path) -> str:
        """Pick the parser from the file extension; CSV unless it is .json."""
        return "json" if path.suffix.lower() == ".json" else "csv"

    def _parse_csv(self, lines) -> List[QuestionPair]:
        """
        Parse CSV rows into question pairs.

        Blank lines are skipped. Every row needs at least two fields and the
        same number of fields as the first row; columns past the second are
        ignored.
        """
        pairs: List[QuestionPair] = []
        expected_fields: Optional[int] = None
        reader = csv.reader(lines, strict=True)
        try:
            for row in reader:
                if not row:
                    continue
                if expected_fields is None:
                    expected_fields = len(row)
                if len(row) != expected_fields:
                    raise QuizImportError(
                        f"Error reading CSV file: record on line {reader.line_num}: "
                        f"wrong number of fields ({len(row)}, expected {expected_fields})"
                    )
                if len(row) < 2:
                    raise QuizImportError(
                        f"Error reading CSV file: record on line {reader.line_num}: "
                        f"expected a question and an answer"
                    )
                pairs.append((row[0], row[1]))
        except csv.Error as e:
            raise QuizImportError(f"Error reading CSV file: line {reader.line_num}: {e}") from e
        return pairs

    def _parse_json(self, text: str) -> List[QuestionPair]:
        """
        Parse JSON quiz data into question pairs.

        Expected structure:
        {
            "quiz": [
                {"question": str, "answer": str}
            ]
        }
        """
        if not text.strip():
            return []

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise QuizImportError(f"Invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise QuizImportError("Quiz data must be a JSON object")
        if "quiz" not in data:
            raise QuizImportError("Quiz data must contain a 'quiz' key")

        quiz_array = data["quiz"]
        if not isinstance(quiz_array, list):
            raise QuizImportError("'quiz' value must be an array")

        pairs: List[QuestionPair] = []
        for i, question_data in enumerate(quiz_array):
            if not isinstance(question_data, dict):
                raise QuizImportError(f"Question {i} must be an object")
            for key in ("question", "answer"):
                if key not in question_data:
                    raise QuizImportError(f"Question {i} missing '{key}' field")
                if not isinstance(question_data[key], str):
                    raise QuizImportError(f"Question {i} '{key}' field must be a string")
            pairs.append((question_data["question"], question_data["answer"]))
        return pairs

"""
Configuration manager for quiz run settings.

Settings are layered: defaults, then an optional JSON config file, then
environment variables, then command-line flags (applied by the CLI through
the setters below).
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .errors import ConfigError
from .models import QuizSettings


class ConfigManager:
    """Manages quiz settings and their validation."""

    # Default configuration values
    DEFAULT_QUIZ_FILE = "problems.csv"
    DEFAULT_TIME_LIMIT = 30
    DEFAULT_SHUFFLE = False
    DEFAULT_LOG_LEVEL = "WARNING"

    # Validation limits
    MIN_TIME_LIMIT = 0  # 0 disables the countdown
    MAX_TIME_LIMIT = 24 * 60 * 60
    VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

    # Environment variable -> setter name
    ENVIRONMENT_KEYS = {
        "QUIZ_FILE": "quiz_file",
        "QUIZ_TIME_LIMIT": "time_limit",
        "QUIZ_SHUFFLE": "shuffle",
        "QUIZ_SEED": "seed",
        "QUIZ_MAX_READS": "max_outstanding_reads",
        "QUIZ_LOG_LEVEL": "log_level",
        "QUIZ_LOG_DIR": "log_directory",
    }

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._settings = QuizSettings(
            quiz_file=self.DEFAULT_QUIZ_FILE,
            time_limit=self.DEFAULT_TIME_LIMIT,
            shuffle=self.DEFAULT_SHUFFLE,
            log_level=self.DEFAULT_LOG_LEVEL,
        )

    def get_quiz_settings(self) -> QuizSettings:
        """
        Get a copy of the current settings.

        Returns:
            QuizSettings object with current configuration
        """
        return QuizSettings(**vars(self._settings))

    def set_quiz_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        """Set the question source file."""
        if not str(path).strip():
            return self._failure("Quiz file path cannot be empty")
        self._settings.quiz_file = str(path)
        return self._success(f"Quiz file set to {path}")

    def set_time_limit(self, seconds: int) -> Dict[str, Any]:
        """
        Set the total time budget for a run.

        Args:
            seconds: Whole seconds for the entire quiz; 0 disables the limit

        Returns:
            Dictionary with success status and message or error
        """
        if isinstance(seconds, bool) or not isinstance(seconds, int):
            return self._failure(f"Time limit must be an integer, got {type(seconds).__name__}")
        if seconds < self.MIN_TIME_LIMIT:
            return self._failure(f"Time limit must be at least {self.MIN_TIME_LIMIT}")
        if seconds > self.MAX_TIME_LIMIT:
            return self._failure(f"Time limit cannot exceed {self.MAX_TIME_LIMIT}")

        self._settings.time_limit = seconds
        if seconds == 0:
            return self._success("Time limit disabled")
        return self._success(f"Time limit set to {seconds} seconds")

    def set_shuffle(self, shuffle: bool) -> Dict[str, Any]:
        """Set whether questions are shuffled before the run."""
        if not isinstance(shuffle, bool):
            return self._failure(f"Shuffle must be a boolean, got {type(shuffle).__name__}")
        self._settings.shuffle = shuffle
        order_type = "random" if shuffle else "file"
        return self._success(f"Questions will be asked in {order_type} order")

    def set_seed(self, seed: Optional[int]) -> Dict[str, Any]:
        """Set the shuffle seed; None seeds from the current time."""
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            return self._failure(f"Seed must be an integer, got {type(seed).__name__}")
        self._settings.seed = seed
        return self._success(f"Shuffle seed set to {seed}")

    def set_max_outstanding_reads(self, count: Optional[int]) -> Dict[str, Any]:
        """Bound the number of unfinished input reads; None means unbounded."""
        if count is not None:
            if isinstance(count, bool) or not isinstance(count, int):
                return self._failure(f"Read bound must be an integer, got {type(count).__name__}")
            if count < 1:
                return self._failure("Read bound must be at least 1")
        self._settings.max_outstanding_reads = count
        return self._success(f"Outstanding read bound set to {count}")

    def set_log_level(self, level: str) -> Dict[str, Any]:
        """Set the logging level name."""
        if not isinstance(level, str) or level.upper() not in self.VALID_LOG_LEVELS:
            return self._failure(
                f"Log level must be one of {', '.join(self.VALID_LOG_LEVELS)}, got {level!r}"
            )
        self._settings.log_level = level.upper()
        return self._success(f"Log level set to {level.upper()}")

    def set_log_directory(self, directory: Optional[Union[str, Path]]) -> Dict[str, Any]:
        """Set the directory for the log file; None logs to stderr only."""
        self._settings.log_directory = str(directory) if directory else None
        return self._success(f"Log directory set to {self._settings.log_directory}")

    def load_config_file(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Apply settings from a JSON config file.

        Expected structure (every key optional):
        {
            "quiz_file": str,
            "time_limit": int,
            "shuffle": bool,
            "seed": int,
            "max_outstanding_reads": int,
            "logging": {"level": str, "log_directory": str}
        }

        Raises:
            ConfigError: If the file is unreadable, not JSON, or holds an invalid value
        """
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Unable to read config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")

        values = {k: v for k, v in data.items() if k != "logging"}
        log_config = data.get("logging", {})
        if not isinstance(log_config, dict):
            raise ConfigError("'logging' must be an object")
        if "level" in log_config:
            values["log_level"] = log_config["level"]
        if "log_directory" in log_config:
            values["log_directory"] = log_config["log_directory"]

        self._apply(values, source=str(path))
        return self._success(f"Loaded configuration from {path}")

    def apply_environment(self, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        """
        Apply QUIZ_* environment variable overrides.

        Raises:
            ConfigError: If a variable holds a value that cannot be used
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for env_key, name in self.ENVIRONMENT_KEYS.items():
            raw = environ.get(env_key)
            if raw is None or raw == "":
                continue
            if name in ("time_limit", "seed", "max_outstanding_reads"):
                try:
                    values[name] = int(raw)
                except ValueError as e:
                    raise ConfigError(f"{env_key} must be an integer, got {raw!r}") from e
            elif name == "shuffle":
                values[name] = raw.strip().lower() in ("1", "true", "yes", "on")
            else:
                values[name] = raw

        self._apply(values, source="environment")
        return self._success(f"Applied {len(values)} environment overrides")

    def _apply(self, values: Mapping[str, Any], source: str) -> None:
        setters = {
            "quiz_file": self.set_quiz_file,
            "time_limit": self.set_time_limit,
            "shuffle": self.set_shuffle,
            "seed": self.set_seed,
            "max_outstanding_reads": self.set_max_outstanding_reads,
            "log_level": self.set_log_level,
            "log_directory": self.set_log_directory,
        }
        for name, value in values.items():
            setter = setters.get(name)
            if setter is None:
                self.logger.warning(f"Ignoring unknown setting '{name}' from {source}")
                continue
            result = setter(value)
            if not result['success']:
                raise ConfigError(f"{source}: {result['error']}")

    def _success(self, message: str) -> Dict[str, Any]:
        self.logger.info(message)
        return {'success': True, 'message': message}

    def _failure(self, error: str) -> Dict[str, Any]:
        self.logger.error(error)
        return {'success': False, 'error': error}

"""
Command-line interface for the timed quiz.

Reads a question file, optionally shuffles it, runs the quiz against one
shared countdown and prints the score.
"""
import argparse
import asyncio
import logging
import os
import random
import sys
import time
from pathlib import Path
from typing import List, Optional

from .config_manager import ConfigManager
from .errors import ConfigError, QuizImportError
from .models import QuizSettings
from .quiz_engine import QuizEngine
from .response_reader import ResponseReader

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="timed-quiz",
        description="Answer a set of questions before the time runs out.",
    )
    parser.add_argument("--csv", dest="quiz_file", metavar="FILE",
                        help="question file in the format 'question,answer' (or .json)")
    parser.add_argument("--limit", dest="time_limit", type=int, metavar="SECONDS",
                        help="time limit for the whole quiz in seconds, 0 for none")
    parser.add_argument("--shuffle", action="store_true", default=None,
                        help="ask the questions in random order")
    parser.add_argument("--seed", type=int,
                        help="seed for --shuffle, for a repeatable order")
    parser.add_argument("--max-reads", dest="max_outstanding_reads", type=int, metavar="N",
                        help="refuse to start a read while N earlier reads are unfinished")
    parser.add_argument("--config", metavar="FILE",
                        help="JSON config file")
    parser.add_argument("--log-level", metavar="LEVEL",
                        help="logging level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--log-dir", metavar="DIR",
                        help="also write logs to DIR/quiz.log")
    return parser


def load_settings(args: argparse.Namespace, environ=None) -> QuizSettings:
    """
    Resolve settings from defaults, config file, environment and flags.

    Raises:
        ConfigError: If any source holds an invalid value
    """
    config = ConfigManager()
    if args.config:
        config.load_config_file(args.config)
    config.apply_environment(environ)

    overrides = [
        (args.quiz_file, config.set_quiz_file),
        (args.time_limit, config.set_time_limit),
        (args.shuffle, config.set_shuffle),
        (args.seed, config.set_seed),
        (args.max_outstanding_reads, config.set_max_outstanding_reads),
        (args.log_level, config.set_log_level),
        (args.log_dir, config.set_log_directory),
    ]
    for value, setter in overrides:
        if value is None:
            continue
        result = setter(value)
        if not result['success']:
            raise ConfigError(result['error'])

    return config.get_quiz_settings()


def setup_logging(settings: QuizSettings) -> None:
    """Set up logging; quiz output on stdout is never mixed with log lines."""
    log_level = getattr(logging, settings.log_level.upper(), logging.WARNING)
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if settings.log_directory:
        log_directory = Path(settings.log_directory)
        log_directory.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_directory / "quiz.log", encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def exit_with_error(message: str, status: int = 1) -> None:
    """Report a fatal error to the user and terminate."""
    print(message)
    logger.error(message)
    sys.exit(status)


def run_quiz(settings: QuizSettings, stdin=None, stdout=None, reader: Optional[ResponseReader] = None) -> int:
    """
    Import, play and score one quiz.

    Args:
        settings: Resolved quiz settings
        stdin: Answer stream when no reader is given, defaults to sys.stdin
        stdout: Output stream, defaults to sys.stdout
        reader: Reader to use instead of one built on stdin

    Returns:
        Process exit status
    """
    if reader is None:
        reader = ResponseReader(stdin, max_outstanding=settings.max_outstanding_reads)
    rng = random.Random(settings.seed if settings.seed is not None else time.time_ns())
    engine = QuizEngine(
        reader=reader,
        output=stdout,
        rng=rng,
    )

    try:
        engine.import_questions(settings.quiz_file, shuffle=settings.shuffle)
    except QuizImportError as e:
        exit_with_error(str(e))

    asyncio.run(engine.play(settings.time_limit))
    engine.score()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the timed-quiz command."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args)
    except ConfigError as e:
        exit_with_error(f"Configuration error: {e}")

    setup_logging(settings)
    logger.info(f"Starting quiz from {settings.quiz_file}")

    reader = ResponseReader(max_outstanding=settings.max_outstanding_reads)
    try:
        status = run_quiz(settings, reader=reader)
    except KeyboardInterrupt:
        print("\nQuiz stopped by user")
        status = 130

    if reader.outstanding:
        # A thread still blocked on stdin aborts interpreter shutdown
        logger.debug(f"Exiting with {reader.outstanding} abandoned read(s) pending")
        sys.stdout.flush()
        logging.shutdown()
        os._exit(status)
    return status

"""
Quiz engine core logic for the timed quiz.
Handles question import and ordering, the shared countdown, and the
play/score loop that races each question against the remaining time.
"""
import asyncio
import logging
import random
import sys
import time
from enum import Enum
from pathlib import Path
from typing import List, Optional, TextIO, Union

from .data_manager import DataManager
from .errors import QuizStateError
from .models import Question, QuizResult
from .response_reader import ResponseReader

# Set up logger for timer and loop operations
logger = logging.getLogger(__name__)


class TimerLifecycleLogger:
    """Structured logging for countdown lifecycle events."""

    @staticmethod
    def log_timer_creation(duration: int, tick_interval: float) -> None:
        """Log countdown creation with structured data."""
        logger.info(
            f"Timer lifecycle: CREATED - Duration {duration}s",
            extra={
                'event_type': 'timer_created',
                'duration': duration,
                'tick_interval': tick_interval,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_start(task_id: Optional[str] = None) -> None:
        """Log countdown start."""
        logger.info(
            "Timer lifecycle: COUNTDOWN_START",
            extra={
                'event_type': 'timer_countdown_start',
                'task_id': task_id,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_update(remaining_time: int, total_duration: int) -> None:
        """Log timer update events (throttled to avoid spam)."""
        if remaining_time % 10 == 0 or remaining_time <= 5:
            progress_percent = ((total_duration - remaining_time) / total_duration) * 100
            logger.debug(
                f"Timer lifecycle: UPDATE - Remaining {remaining_time}s ({progress_percent:.1f}% complete)",
                extra={
                    'event_type': 'timer_update',
                    'remaining_time': remaining_time,
                    'total_duration': total_duration,
                    'progress_percent': progress_percent,
                    'timestamp': time.time()
                }
            )

    @staticmethod
    def log_timer_completion(completion_type: str, total_duration: int) -> None:
        """Log timer completion (natural expiry or cancellation)."""
        logger.info(
            f"Timer lifecycle: COMPLETED - Type {completion_type}, Duration {total_duration}s",
            extra={
                'event_type': 'timer_completed',
                'completion_type': completion_type,
                'total_duration': total_duration,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_runner_abandoned(question_number: int, remaining_reads: int) -> None:
        """Log a question whose read is left running after the deadline."""
        logger.warning(
            f"Timer lifecycle: DEADLINE - Abandoned read for question {question_number}",
            extra={
                'event_type': 'runner_abandoned',
                'question_number': question_number,
                'outstanding_reads': remaining_reads,
                'timestamp': time.time()
            }
        )


class QuizTimer:
    """Single countdown shared by every question of a run."""

    def __init__(self, tick_interval: float = 1.0):
        """
        Initialize the timer.

        Args:
            tick_interval: Wall-clock length of one countdown second
        """
        self._task: Optional[asyncio.Task] = None
        self._tick_interval = tick_interval
        self._remaining_time = 0
        self._total_duration = 0
        self._is_cancelled = False
        self._has_fired = False

    async def start_countdown(self, duration: int) -> None:
        """
        Count down from duration, measured against the loop clock.

        Args:
            duration: Timer duration in seconds
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + duration * self._tick_interval
        self._remaining_time = duration
        self._total_duration = duration
        self._is_cancelled = False

        TimerLifecycleLogger.log_timer_start(str(id(self._task)) if self._task else None)

        try:
            while True:
                left = deadline - loop.time()
                if left <= 0:
                    break
                # Whole seconds still to go, rounded up
                self._remaining_time = max(1, int(-(-left // self._tick_interval)))
                TimerLifecycleLogger.log_timer_update(self._remaining_time, self._total_duration)
                await asyncio.sleep(min(self._tick_interval, left))

            self._remaining_time = 0
            self._has_fired = True
            TimerLifecycleLogger.log_timer_completion("natural_expiry", self._total_duration)

        except asyncio.CancelledError:
            self._is_cancelled = True
            TimerLifecycleLogger.log_timer_completion("asyncio_cancelled", self._total_duration)
            raise

    def start(self, duration: int) -> asyncio.Task:
        """Run the countdown as a background task and return it."""
        if self._task is not None:
            raise QuizStateError("Countdown already started; it is never restarted")
        TimerLifecycleLogger.log_timer_creation(duration, self._tick_interval)
        self._task = asyncio.create_task(self.start_countdown(duration))
        return self._task

    def cancel(self) -> None:
        """Cancel the countdown without waiting for it."""
        self._is_cancelled = True
        if self._task and not self._task.done():
            logger.debug("Cancelling countdown task")
            self._task.cancel()

    async def stop(self) -> None:
        """Cancel the countdown and wait until its task has finished."""
        if self._task is None or self._task.done():
            return
        self.cancel()
        await asyncio.wait({self._task})

    @property
    def task(self) -> Optional[asyncio.Task]:
        """The countdown task; its completion is the deadline signal."""
        return self._task

    @property
    def has_fired(self) -> bool:
        """Check if the countdown ran out."""
        return self._has_fired

    @property
    def is_cancelled(self) -> bool:
        """Check if timer is cancelled."""
        return self._is_cancelled

    @property
    def remaining_time(self) -> int:
        """Get remaining time in seconds."""
        return self._remaining_time


class RunnerState(Enum):
    """Lifecycle of a single question within a run."""
    PENDING = "pending"
    ASKED = "asked"
    SCORED = "scored"


class QuestionRunner:
    """
    Asks one question and captures the answer.

    The captured answer is delivered through the task returned by start(), so
    the engine can race it against the countdown. Nothing is written to the
    question until the engine calls record(), which it only does for an
    answer that beat the deadline. The runner never touches the engine's
    counters.
    """

    def __init__(self, question: Question, reader: ResponseReader, output: TextIO, number: int = 0):
        self.question = question
        self.number = number
        self._reader = reader
        self._output = output
        self._state = RunnerState.PENDING
        self._abandoned = False
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> RunnerState:
        return self._state

    @property
    def abandoned(self) -> bool:
        return self._abandoned

    async def run(self) -> Optional[str]:
        """
        Print the prompt and wait for the answer.

        Returns:
            The answer line, "" if input ended, or None if the runner was
            abandoned while waiting
        """
        if self._state is not RunnerState.PENDING:
            raise QuizStateError(f"Question {self.number} has already been asked")

        print(f"{self.question.text} = ? ", end="", file=self._output, flush=True)
        future = self._reader.begin_read()
        self._state = RunnerState.ASKED

        response = await future
        if self._abandoned:
            logger.debug(f"Ignoring late answer for question {self.number}")
            return None

        if response is None:
            logger.warning(f"No answer for question {self.number}: input ended")
            response = ""
        return response

    def record(self, response: str) -> int:
        """
        Score a captured answer into the question.

        Returns:
            1 if the answer was correct, else 0

        Raises:
            QuizStateError: If the runner was abandoned, or has no answer to record
        """
        if self._abandoned:
            raise QuizStateError(f"Question {self.number} was abandoned at the deadline")
        if self._state is not RunnerState.ASKED:
            raise QuizStateError(f"Question {self.number} is {self._state.value}, not awaiting an answer")

        self.question.record_answer(response)
        self._state = RunnerState.SCORED
        logger.debug(
            f"Question {self.number} scored",
            extra={
                'event_type': 'question_scored',
                'question_number': self.number,
                'is_correct': self.question.is_correct,
                'timestamp': time.time()
            }
        )
        return 1 if self.question.is_correct else 0

    def start(self) -> asyncio.Task:
        """Start run() as a task; the task is the completion signal."""
        self._task = asyncio.create_task(self.run(), name=f"question-runner-{self.number}")
        return self._task

    def abandon(self) -> None:
        """
        Stop observing this runner.

        The pending read is left to finish on its own; whatever it produces is
        discarded, including an answer that arrived together with the deadline.
        """
        self._abandoned = True
        if self._task is not None:
            self._task.add_done_callback(self._on_abandoned_done)

    def _on_abandoned_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.debug(f"Abandoned runner for question {self.number} was cancelled")
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Abandoned runner for question {self.number} failed: {error}")
        else:
            logger.debug(f"Abandoned runner for question {self.number} finished unobserved")


class QuizEngine:
    """
    Owns the question list and runs a single timed quiz.

    An engine is single-use: import (and optionally shuffle), play once,
    then score.
    """

    def __init__(
        self,
        reader: Optional[ResponseReader] = None,
        output: Optional[TextIO] = None,
        rng: Optional[random.Random] = None,
        data_manager: Optional[DataManager] = None,
        tick_interval: float = 1.0
    ):
        """
        Initialize the quiz engine.

        Args:
            reader: Source of answers, defaults to a reader on stdin
            output: Stream for prompts and reports, defaults to stdout
            rng: Random generator for shuffling, seeded from the clock if None
            data_manager: Loader used by import_questions
            tick_interval: Wall-clock length of one countdown second
        """
        self.questions: List[Question] = []
        self.asked_count = 0
        self.correct_count = 0
        self.timed_out = False
        self.time_limit = 0
        self._reader = reader if reader is not None else ResponseReader()
        self._output = output if output is not None else sys.stdout
        self._rng = rng if rng is not None else random.Random(time.time_ns())
        self._data_manager = data_manager if data_manager is not None else DataManager()
        self._tick_interval = tick_interval
        self._played = False
        self._timer: Optional[QuizTimer] = None

    @property
    def answered_count(self) -> int:
        """Number of questions whose answer was captured."""
        return sum(1 for q in self.questions if q.was_asked)

    def import_questions(
        self,
        source: Union[str, Path],
        shuffle: bool = False,
        fmt: Optional[str] = None
    ) -> List[Question]:
        """
        Build the question list from a quiz file.

        Args:
            source: Path to a CSV or JSON quiz file
            shuffle: Shuffle the questions once they are loaded
            fmt: Force "csv" or "json" instead of using the file extension

        Returns:
            The engine's question list

        Raises:
            QuizImportError: If the source is unreadable or any row is malformed
        """
        self._ensure_not_played("import questions")
        pairs = self._data_manager.load_questions(source, fmt)
        self.questions = [Question(text, answer) for text, answer in pairs]
        logger.info(f"Imported {len(self.questions)} questions from {source}")

        if shuffle:
            self.shuffle_questions()
        return self.questions

    def add_question(self, text: str, answer: str) -> Question:
        """Append a single question to the list."""
        self._ensure_not_played("add questions")
        question = Question(text, answer)
        self.questions.append(question)
        return question

    def shuffle_questions(self) -> None:
        """
        Shuffle the questions in place (Fisher-Yates via random.shuffle).

        Raises:
            QuizStateError: If the quiz has already been played
        """
        self._ensure_not_played("shuffle questions")
        self._rng.shuffle(self.questions)
        logger.debug(f"Shuffled {len(self.questions)} questions")

    async def play(self, time_limit: int = 0) -> None:
        """
        Ask every question in order until the list or the time runs out.

        One countdown covers the whole quiz. Each question's runner is raced
        against it; when the countdown wins, the question in flight is
        abandoned and no further questions are asked.

        Args:
            time_limit: Seconds for the entire quiz; 0 or less means no limit.
                Positive limits are raised to at least one second per question.

        Raises:
            QuizStateError: If the quiz has already been played
        """
        self._ensure_not_played("play")
        self._played = True

        nq = len(self.questions)
        self._print(f"Please answer the following {nq} questions:")

        timer: Optional[QuizTimer] = None
        if time_limit > 0:
            if time_limit < nq:
                time_limit = nq
            self._print(f"(You have {time_limit} seconds to finish!)")
            timer = QuizTimer(self._tick_interval)
            timer.start(time_limit)
            self._timer = timer
        else:
            time_limit = 0
        self.time_limit = time_limit

        try:
            for question in self.questions:
                self.asked_count += 1
                self._print(f"{self.asked_count}: ", end="")
                runner = QuestionRunner(question, self._reader, self._output, self.asked_count)
                runner_task = runner.start()

                waiters = {runner_task}
                if timer is not None:
                    waiters.add(timer.task)
                done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)

                # Deadline wins a tie: an answer captured in the same wake-up
                # is discarded and its question stays unanswered
                if timer is not None and timer.task in done:
                    timer.task.result()
                    runner.abandon()
                    self.timed_out = True
                    TimerLifecycleLogger.log_runner_abandoned(self.asked_count, self._reader.outstanding)
                    self._print("\nSorry, your time has run out!")
                    break

                self.correct_count += runner.record(runner_task.result())
                logger.debug(
                    f"Progress: {self.correct_count} correct of {self.asked_count} asked",
                    extra={
                        'event_type': 'quiz_progress',
                        'asked_count': self.asked_count,
                        'correct_count': self.correct_count,
                        'timestamp': time.time()
                    }
                )
        finally:
            if timer is not None:
                await timer.stop()

    def score(self) -> QuizResult:
        """
        Print the end-of-run report and return the result.

        Returns:
            QuizResult describing the finished run
        """
        nq = len(self.questions)
        answered = self.answered_count
        wrong = []
        for question in self.questions:
            line = question.describe_if_wrong()
            if line is not None:
                wrong.append(line)

        result = QuizResult(
            total=nq,
            asked=self.asked_count,
            answered=answered,
            correct=self.correct_count,
            timed_out=self.timed_out,
            wrong=wrong
        )
        logger.info(f"Quiz finished: {result.correct}/{result.total} correct, timed out: {result.timed_out}")

        self._print(f"You scored {self.correct_count} out of {nq}")
        if self.correct_count == nq:
            self._print("Congratulations! You scored 100% correct!")
            return result

        if answered < nq:
            self._print(f"You only answered {answered} questions!")
            if self.correct_count == answered:
                self._print("Of the ones you were asked, you got all correct!")
                return result

        self._print("These are the correct answers for the ones you got wrong:")
        for line in wrong:
            self._print(line)
        return result

    def _ensure_not_played(self, action: str) -> None:
        if self._played:
            raise QuizStateError(f"Cannot {action}: this quiz has already been played")

    def _print(self, text: str, end: str = "\n") -> None:
        print(text, end=end, file=self._output, flush=True)

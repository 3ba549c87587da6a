"""
Blocking line reads delivered to the event loop as futures.

The input stream cannot be cancelled, so each read runs on its own daemon
thread. A caller that stops waiting on the returned future simply abandons
the read; when it eventually finishes nobody observes the result.
"""
import asyncio
import logging
import sys
import threading
import time
from typing import Optional, TextIO

from .errors import ResponseReaderError
from .models import normalize_response

logger = logging.getLogger(__name__)


class ResponseReader:
    """Reads one line at a time from a text stream without blocking the loop."""

    def __init__(self, stream: Optional[TextIO] = None, max_outstanding: Optional[int] = None):
        """
        Initialize the reader.

        Args:
            stream: Text stream to read from, defaults to sys.stdin
            max_outstanding: Optional bound on reads that have not finished yet,
                including abandoned ones. None means unbounded.
        """
        self._stream = stream if stream is not None else sys.stdin
        self._max_outstanding = max_outstanding
        self._outstanding = 0
        self._lock = threading.Lock()
        self._read_count = 0

    @property
    def outstanding(self) -> int:
        """Number of reads started but not yet finished."""
        with self._lock:
            return self._outstanding

    def begin_read(self) -> "asyncio.Future[Optional[str]]":
        """
        Start reading one line on a background thread.

        Returns:
            Future resolving to the normalized line, or None at end of stream.
            A read error is set as the future's exception.

        Raises:
            ResponseReaderError: If max_outstanding reads are already in flight
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        with self._lock:
            if self._max_outstanding is not None and self._outstanding >= self._max_outstanding:
                raise ResponseReaderError(
                    f"Too many outstanding reads ({self._outstanding}/{self._max_outstanding})"
                )
            self._outstanding += 1
            self._read_count += 1
            read_id = self._read_count

        thread = threading.Thread(
            target=self._read_line,
            args=(loop, future, read_id),
            name=f"response-reader-{read_id}",
            daemon=True,
        )
        thread.start()
        logger.debug(
            f"Started read {read_id}",
            extra={
                'event_type': 'read_started',
                'read_id': read_id,
                'outstanding': self.outstanding,
                'timestamp': time.time()
            }
        )
        return future

    def _read_line(self, loop: asyncio.AbstractEventLoop, future: asyncio.Future, read_id: int) -> None:
        """Thread body: perform the blocking read and hand the result to the loop."""
        result: Optional[str] = None
        error: Optional[BaseException] = None
        try:
            line = self._stream.readline()
            if line:
                result = normalize_response(line)
        except Exception as e:
            error = e
        finally:
            with self._lock:
                self._outstanding -= 1

        try:
            loop.call_soon_threadsafe(self._deliver, future, result, error, read_id)
        except RuntimeError:
            # Loop already closed
            logger.debug(
                f"Read {read_id} finished with no observer",
                extra={
                    'event_type': 'read_unobserved',
                    'read_id': read_id,
                    'timestamp': time.time()
                }
            )

    @staticmethod
    def _deliver(
        future: asyncio.Future,
        result: Optional[str],
        error: Optional[BaseException],
        read_id: int
    ) -> None:
        if future.done():
            logger.debug(f"Read {read_id} finished after its future was cancelled")
            return
        if error is not None:
            logger.error(
                f"Read {read_id} failed: {error}",
                extra={
                    'event_type': 'read_error',
                    'read_id': read_id,
                    'error_type': type(error).__name__,
                    'timestamp': time.time()
                }
            )
            future.set_exception(error)
        else:
            if result is None:
                logger.warning(f"Read {read_id} hit end of input")
            future.set_result(result)

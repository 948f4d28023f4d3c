"""
Answer submission.

After each page is completed the runtime hands that page's answers to a
SubmissionSink. Submissions are fire-and-forget: they run on a small
thread pool, may finish in any order, and a failing sink is logged and
ignored. flush() waits for everything still in flight; close() also
releases the worker threads, and the runtime calls it before reporting
completion. Submissions pushed after close() are dropped.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Answer:
    block_id: str
    value: Any


@dataclass(frozen=True)
class Submission:
    """Payload for one page's worth of answers."""

    document_id: str
    session_id: str
    answers: List[Answer] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "documentId": self.document_id,
            "sessionId": self.session_id,
            "answers": [{"blockId": a.block_id, "value": a.value} for a in self.answers],
        }


class SubmissionSink(Protocol):
    def submit(self, submission: Submission) -> None:
        ...


class SubmissionQueue:
    """
    Runs sink.submit in the background and tracks what is pending.

    With no sink, push() is a no-op.
    """

    def __init__(self, sink: Optional[SubmissionSink] = None, max_workers: int = 4):
        self.sink = sink
        self._executor = ThreadPoolExecutor(max_workers=max_workers) if sink is not None else None
        self._pending = []
        self._lock = threading.Lock()
        self._closed = False

    def push(self, submission: Submission) -> None:
        if self._executor is None:
            return
        with self._lock:
            if self._closed:
                logger.warning(
                    "Dropping submission for session %s (%d answers): queue is closed",
                    submission.session_id, len(submission.answers),
                )
                return
            self._pending.append(self._executor.submit(self._submit, submission))

    def _submit(self, submission: Submission) -> None:
        try:
            self.sink.submit(submission)
        except Exception as e:
            logger.warning(
                "Submission for session %s (%d answers) failed: %s",
                submission.session_id, len(submission.answers), e,
            )

    def flush(self, timeout: Optional[float] = None) -> None:
        """Block until every pushed submission has finished (or timeout)."""
        with self._lock:
            pending, self._pending = self._pending, []
        if pending:
            wait(pending, timeout=timeout)

    def close(self) -> None:
        """Wait for pending submissions and release the worker threads."""
        with self._lock:
            self._closed = True
        self.flush()
        if self._executor is not None:
            self._executor.shutdown(wait=True)

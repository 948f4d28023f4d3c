"""Tests for background answer submission."""

import threading

from branchlogic.submissions import Answer, Submission, SubmissionQueue

from conftest import FailingSink, RecordingSink


def make_submission(n=1):
    return Submission(
        document_id="doc1",
        session_id="s1",
        answers=[Answer(block_id=f"q{i}", value=i) for i in range(n)],
    )


def test_submission_payload_shape():
    assert make_submission(2).to_dict() == {
        "documentId": "doc1",
        "sessionId": "s1",
        "answers": [{"blockId": "q0", "value": 0}, {"blockId": "q1", "value": 1}],
    }


def test_flush_waits_for_all_submissions():
    sink = RecordingSink()
    queue = SubmissionQueue(sink)
    for _ in range(10):
        queue.push(make_submission())
    queue.flush()
    assert len(sink.submissions) == 10
    queue.close()


def test_slow_sink_completes_before_flush_returns():
    release = threading.Event()
    done = []

    class SlowSink:
        def submit(self, submission):
            release.wait(timeout=5)
            done.append(submission)

    queue = SubmissionQueue(SlowSink())
    queue.push(make_submission())
    release.set()
    queue.flush()
    assert len(done) == 1
    queue.close()


def test_failures_are_swallowed():
    queue = SubmissionQueue(FailingSink())
    queue.push(make_submission())
    queue.flush()
    queue.close()


def test_queue_without_sink_is_noop():
    queue = SubmissionQueue(None)
    queue.push(make_submission())
    queue.flush()
    queue.close()


def test_push_after_close_is_dropped():
    sink = RecordingSink()
    queue = SubmissionQueue(sink)
    queue.push(make_submission())
    queue.close()
    queue.push(make_submission())
    queue.flush()
    assert len(sink.submissions) == 1
    queue.close()

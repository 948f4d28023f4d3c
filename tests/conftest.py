"""Shared fixtures and fake collaborators for branchlogic tests."""

import threading

import pytest

from branchlogic.model import Block, BlockType, Document, Page


class RecordingCallbacks:
    """Collects every callback the controller makes, in order."""

    def __init__(self):
        self.page_changes = []
        self.page_completions = []
        self.completions = []
        self.redirects = []

    def on_page_change(self, page):
        self.page_changes.append(page)

    def on_page_complete(self, page):
        self.page_completions.append(page)

    def on_complete(self, values, redirect_url):
        self.completions.append((values, redirect_url))

    def redirect(self, url):
        self.redirects.append(url)

    def kwargs(self):
        return {
            "on_page_change": self.on_page_change,
            "on_page_complete": self.on_page_complete,
            "on_complete": self.on_complete,
            "redirect": self.redirect,
        }


class RecordingSink:
    def __init__(self):
        self.submissions = []
        self._lock = threading.Lock()

    def submit(self, submission):
        with self._lock:
            self.submissions.append(submission)


class FailingSink:
    def submit(self, submission):
        raise ConnectionError("sink unavailable")


class FailingStore:
    def get(self, key):
        raise OSError("storage disabled")

    def set(self, key, values):
        raise OSError("quota exceeded")

    def clear(self, key):
        raise OSError("storage disabled")


def text_input(block_id, **validations):
    return Block(
        id=block_id,
        type=BlockType.TEXT_INPUT,
        properties={"name": block_id},
        validations=validations or {},
    )


def single_choice(block_id, **validations):
    return Block(
        id=block_id,
        type=BlockType.MULTIPLE_CHOICE,
        properties={"name": block_id, "multiple": False, "options": [{"id": "a", "label": "A"}]},
        validations=validations or {},
    )


def make_document(*pages, rules=None, variables=None, document_id="doc1"):
    return Document(id=document_id, pages=list(pages), rules=list(rules or []), variables=dict(variables or {}))


@pytest.fixture
def callbacks():
    return RecordingCallbacks()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def three_page_document():
    """page0/page1/page2, one text input each, no rules."""
    return make_document(
        Page(id="page0", name="First", blocks=[text_input("q0")]),
        Page(id="page1", name="Second", blocks=[text_input("q1")]),
        Page(id="page2", name="Third", blocks=[text_input("q2")]),
    )
